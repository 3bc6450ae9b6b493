"""
Download domain models for twiglet.

This module contains the data classes describing a single file transfer
and the summary of a completed subtree fetch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional


@dataclass
class FileDownloadInfo:
    """Information about a single file to be downloaded."""

    url: str
    destination: Path
    size: int
    sha: str

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("File URL is required")
        if self.size < 0:
            raise ValueError("File size cannot be negative")


@dataclass
class FetchSummary:
    """What a successful subtree fetch left on disk."""

    directories_created: List[Path] = field(default_factory=list)
    files_written: List[Path] = field(default_factory=list)
    skipped_entries: List[str] = field(default_factory=list)
    bytes_written: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def record_file(self, path: Path, size: int) -> None:
        self.files_written.append(path)
        self.bytes_written += size

    def mark_completed(self) -> None:
        self.completed_at = datetime.now()


__all__ = [
    "FileDownloadInfo",
    "FetchSummary",
]
