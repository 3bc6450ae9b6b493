"""
Content verification using Git's blob hashing scheme.
"""

import hashlib

from ..infrastructure.error_handler import ChecksumMismatch, SizeMismatch


def blob_hash(data: bytes) -> str:
    """
    Compute the Git blob id of some content.

    The hashed payload is ``b"blob <decimal size>\\0"`` followed by the
    content, exactly as ``git hash-object`` does.
    """

    header = b"blob " + str(len(data)).encode("ascii") + b"\0"
    return hashlib.sha1(header + data).hexdigest()


class IntegrityVerifier:
    """Checks downloaded bytes against the size and sha from the listing."""

    def __init__(self, verify_checksum: bool = True):
        self.verify_checksum = verify_checksum

    def verify(self, data: bytes, declared_size: int, declared_sha: str, url: str) -> None:
        """
        Raises:
            SizeMismatch: If the byte count differs, checked before hashing
            ChecksumMismatch: If checksums are enabled and the blob hash differs
        """

        check_size(len(data), declared_size, url)

        if not self.verify_checksum:
            return

        actual = blob_hash(data)
        if actual != declared_sha.lower():
            raise ChecksumMismatch(
                f"bad checksum for {url}: expected {declared_sha}, got {actual}"
            )


def check_size(actual_size: int, declared_size: int, url: str) -> None:
    if actual_size != declared_size:
        raise SizeMismatch(
            f"size mismatch for {url}: expected {declared_size} bytes, "
            f"got {actual_size}; the file may have been corrupted, please retry"
        )
