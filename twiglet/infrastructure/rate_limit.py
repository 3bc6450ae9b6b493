"""
Parsing of GitHub rate-limit response headers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional


@dataclass
class RateLimitInfo:
    """Rate limit state reported by the GitHub API."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    used: Optional[int] = None
    reset_time: Optional[datetime] = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    @property
    def reset_in_seconds(self) -> float:
        if not self.reset_time:
            return 0.0
        return max(0.0, (self.reset_time - datetime.now()).total_seconds())

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo":
        """Read the ``x-ratelimit-*`` headers, ignoring missing or garbled values."""

        def _int(key: str) -> Optional[int]:
            value = headers.get(key)
            if value is None:
                return None
            try:
                return int(value)
            except ValueError:
                return None

        reset = _int("x-ratelimit-reset")
        return cls(
            limit=_int("x-ratelimit-limit"),
            remaining=_int("x-ratelimit-remaining"),
            used=_int("x-ratelimit-used"),
            reset_time=datetime.fromtimestamp(reset) if reset is not None else None,
        )

    def describe(self) -> str:
        """Short human readable summary, empty when nothing is known."""

        parts = []
        if self.remaining is not None and self.limit is not None:
            parts.append(f"{self.remaining}/{self.limit} requests left")
        if self.reset_time is not None:
            parts.append(f"resets at {self.reset_time.isoformat(timespec='seconds')}")
        return ", ".join(parts)


__all__ = ["RateLimitInfo"]
