from .filter import ExclusionMatcher
from .integrity import IntegrityVerifier, blob_hash
from .rewriter import ContentRewriter

__all__ = [
    "ExclusionMatcher",
    "IntegrityVerifier",
    "blob_hash",
    "ContentRewriter",
]
