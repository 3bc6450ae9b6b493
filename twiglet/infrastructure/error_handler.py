"""
Error taxonomy and error translation helpers for twiglet.
"""

import functools
from typing import Awaitable, Callable, Optional, Type, TypeVar

import httpx


T = TypeVar("T")


####
##      EXCEPTIONS
#####
class TwigletError(Exception):
    """Base error for every failure raised while fetching a subtree."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (Original: {self.original_error})"
        return self.message


class InvalidRepoReference(TwigletError):
    """Repository identifier is malformed or given as a URL."""


class RateLimited(TwigletError):
    """Listing request was refused by the provider's rate limiter."""


class ListingError(TwigletError):
    """Listing endpoint answered with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        self.status_code = status_code
        super().__init__(message, original_error)


class DecodeError(TwigletError):
    """Listing body is not a well-formed directory listing."""


class TransferError(TwigletError):
    """Raw content request failed or answered with a non-success status."""


class VerificationError(TwigletError):
    """Downloaded content does not match what the listing declared."""


class SizeMismatch(VerificationError):
    """Downloaded byte count differs from the declared size."""


class ChecksumMismatch(VerificationError):
    """Blob hash of the downloaded content differs from the declared sha."""


class LocalIOError(TwigletError):
    """Local directory or file could not be created or written."""


####
##      DECORATORS
#####
def handle_transport_error(
    error_cls: Type[TwigletError],
    describe: Callable[..., str]
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Convert transport failures of an async service call into a twiglet error.

    Args:
        error_cls: Error type to raise
        describe: Builds the error message from the wrapped call's arguments

    Returns:
        Decorator for async functions
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except TwigletError:
                raise
            except httpx.HTTPError as e:
                raise error_cls(describe(*args, **kwargs), e) from e

        return wrapper

    return decorator


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
    "handle_transport_error",
]
