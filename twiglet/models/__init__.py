"""
Core data models API surface for twiglet.

This file re-exports model classes from domain-specific modules so callers
can write `from twiglet.models import X`.
"""

from .github import (
    DEFAULT_BRANCH,
    EntryKind,
    RepositoryRef,
    RemoteEntry,
    parse_listing,
)
from .download import (
    FileDownloadInfo,
    FetchSummary,
)
from .config import SessionConfiguration

__all__ = [
    # GitHub models
    "DEFAULT_BRANCH",
    "EntryKind",
    "RepositoryRef",
    "RemoteEntry",
    "parse_listing",
    # Download models
    "FileDownloadInfo",
    "FetchSummary",
    # Config models
    "SessionConfiguration",
]
