"""
Configuration models for twiglet fetches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .github import DEFAULT_BRANCH


ReplaceKey = Union[str, bytes]

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RAW_URL = "https://raw.githubusercontent.com"


def _to_bytes(value: ReplaceKey) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


@dataclass(frozen=True)
class SessionConfiguration:
    """
    Options shared read-only by every step of one subtree fetch.

    Built once per invocation and passed by reference through the walker,
    the file fetcher and the services; nothing mutates it afterwards.
    """

    branch: str = DEFAULT_BRANCH
    auth_token: Optional[str] = None
    exclusion_patterns: List[str] = field(default_factory=list)
    # Applied in insertion order, each over the output of the previous one
    replace_rules: Mapping[ReplaceKey, ReplaceKey] = field(default_factory=dict)
    verbose_logging: bool = False
    verify_checksum: bool = True

    # Transport settings
    timeout: float = 300
    chunk_size: int = 8192
    max_concurrent_downloads: int = 1
    api_url: str = DEFAULT_API_URL
    raw_url: str = DEFAULT_RAW_URL

    def __post_init__(self) -> None:
        if not self.branch:
            raise ValueError("branch is required")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.max_concurrent_downloads <= 0:
            raise ValueError("max_concurrent_downloads must be positive")
        if any(len(key) == 0 for key in self.replace_rules):
            raise ValueError("replace rules cannot have an empty search key")

        object.__setattr__(self, "exclusion_patterns", list(self.exclusion_patterns))
        object.__setattr__(self, "replace_rules", dict(self.replace_rules))
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))
        object.__setattr__(self, "raw_url", self.raw_url.rstrip("/"))

    @property
    def replacements(self) -> Tuple[Tuple[bytes, bytes], ...]:
        """Replace rules as ordered byte pairs."""

        return tuple(
            (_to_bytes(key), _to_bytes(value))
            for key, value in self.replace_rules.items()
        )

    @property
    def needs_buffering(self) -> bool:
        """Whether file bodies must be read whole before they are written."""

        return bool(self.replace_rules) or self.verify_checksum

    def auth_headers(self) -> Dict[str, str]:
        if not self.auth_token:
            return {}
        return {"Authorization": f"Bearer {self.auth_token}"}


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_RAW_URL",
    "SessionConfiguration",
]
