"""
twiglet: download a single folder of a GitHub repository without cloning it.
"""

from .infrastructure.error_handler import (
    TwigletError,
    InvalidRepoReference,
    RateLimited,
    ListingError,
    DecodeError,
    TransferError,
    VerificationError,
    SizeMismatch,
    ChecksumMismatch,
    LocalIOError,
)
from .models import FetchSummary, RepositoryRef, SessionConfiguration
from .interfaces.api import (
    SubtreeDownloader,
    fetch_subtree,
    fetch_subtree_sync,
)

__version__ = "0.1.0"

__all__ = [
    "TwigletError",
    "InvalidRepoReference",
    "RateLimited",
    "ListingError",
    "DecodeError",
    "TransferError",
    "VerificationError",
    "SizeMismatch",
    "ChecksumMismatch",
    "LocalIOError",
    "FetchSummary",
    "RepositoryRef",
    "SessionConfiguration",
    "SubtreeDownloader",
    "fetch_subtree",
    "fetch_subtree_sync",
]
