"""
Download service: fetches one raw file and writes it to disk.
"""

import asyncio
from pathlib import Path

import aiofiles
import httpx

from ..core.integrity import IntegrityVerifier, check_size
from ..core.rewriter import ContentRewriter
from ..infrastructure.error_handler import (
    LocalIOError, TransferError, handle_transport_error
)
from ..infrastructure.logger import logger
from ..models import FileDownloadInfo, SessionConfiguration


class DownloadService:
    """
    Retrieves raw file content, verifies and rewrites it, and saves it.

    Bodies are buffered whole only when they must be verified or rewritten;
    otherwise they are streamed to disk chunk by chunk. A destination file
    that was created for a failed transfer is removed before the error
    propagates.
    """

    def __init__(self, client: httpx.AsyncClient, config: SessionConfiguration):
        self.client = client
        self.config = config
        self.verifier = IntegrityVerifier(config.verify_checksum)
        self.rewriter = ContentRewriter(config.replacements)

    @handle_transport_error(
        TransferError,
        lambda self, info: f"download failed: {info.url}"
    )
    async def fetch_file(self, info: FileDownloadInfo) -> int:
        """
        Download a single file to its destination.

        Args:
            info: What to fetch and where to write it

        Returns:
            Number of bytes written

        Raises:
            TransferError: On transport failure or non-success status
            LocalIOError: If the destination cannot be created or written
            SizeMismatch: If the body length differs from the declared size
            ChecksumMismatch: If the body's blob hash differs from the declared sha
        """

        async with self.client.stream(
            "GET",
            info.url,
            headers=self.config.auth_headers(),
            timeout=self.config.timeout,
        ) as response:
            if not response.is_success:
                raise TransferError(
                    f"download failed: {info.url} (HTTP {response.status_code})"
                )

            try:
                handle = await aiofiles.open(info.destination, "wb")
            except OSError as e:
                raise LocalIOError(f"cannot create file {info.destination}", e) from e

            try:
                try:
                    if self.config.needs_buffering:
                        written = await self._write_buffered(response, handle, info)
                    else:
                        written = await self._write_streamed(response, handle, info)
                finally:
                    await handle.close()
            except (Exception, asyncio.CancelledError):
                self._discard(info.destination)
                raise

        logger.debug(f"Downloaded {info.destination} ({written} bytes)")
        return written

    async def _write_buffered(self, response: httpx.Response, handle, info: FileDownloadInfo) -> int:
        data = await response.aread()
        self.verifier.verify(data, info.size, info.sha, info.url)
        data = self.rewriter.apply(data)
        await self._write(handle, data, info.destination)
        return len(data)

    async def _write_streamed(self, response: httpx.Response, handle, info: FileDownloadInfo) -> int:
        total = 0
        async for chunk in response.aiter_bytes(self.config.chunk_size):
            await self._write(handle, chunk, info.destination)
            total += len(chunk)
        check_size(total, info.size, info.url)
        return total

    @staticmethod
    async def _write(handle, data: bytes, destination: Path) -> None:
        try:
            await handle.write(data)
        except OSError as e:
            raise LocalIOError(f"cannot write file {destination}", e) from e

    @staticmethod
    def _discard(destination: Path) -> None:
        try:
            destination.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove partial file {destination}: {e}")


__all__ = ["DownloadService"]
