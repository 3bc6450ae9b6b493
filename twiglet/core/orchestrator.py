"""
Tree walker mirroring a remote repository directory onto the local disk.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Union

from ..models import (
    FetchSummary, FileDownloadInfo, RemoteEntry, RepositoryRef, SessionConfiguration
)
from ..services import DownloadService, GitHubAPIService
from ..infrastructure.error_handler import LocalIOError
from .filter import ExclusionMatcher

from twiglet.infrastructure.logger import logger


####
##      TREE WALKER
#####
class TreeWalker:
    """
    Walks a repository subtree depth-first through the contents API.

    Directories are created locally and recursed into using the path the
    API reports for them; files are handed to the download service.
    Excluded entries are skipped without affecting their siblings, while
    any listing, download or local I/O error aborts the walk.
    """

    def __init__(
        self,
        github_service: GitHubAPIService,
        download_service: DownloadService,
        config: SessionConfiguration
    ):
        self.github_service = github_service
        self.download_service = download_service
        self.config = config
        self.matcher = ExclusionMatcher(config.exclusion_patterns)
        self._semaphore = asyncio.Semaphore(config.max_concurrent_downloads)

    @property
    def is_concurrent(self) -> bool:
        return self.config.max_concurrent_downloads > 1

    async def walk(
        self,
        repo: RepositoryRef,
        remote_path: str,
        local_path: Union[str, Path],
        summary: Optional[FetchSummary] = None
    ) -> FetchSummary:
        """
        Mirror ``remote_path`` of ``repo`` into ``local_path``.

        Args:
            repo: Repository to read
            remote_path: Directory inside the repository, ``/`` for the root
            local_path: Existing local directory receiving the entries
            summary: Optional summary to accumulate into

        Returns:
            FetchSummary describing what was written
        """

        summary = summary if summary is not None else FetchSummary()
        root = remote_path.strip("/")

        logger.debug(f"Walking {repo.full_name}@{self.config.branch}:/{root} into {local_path}")
        await self._walk_directory(repo, root, Path(local_path), root, summary)

        summary.mark_completed()
        logger.debug(
            f"Walk completed: {len(summary.files_written)} files, "
            f"{len(summary.directories_created)} directories, "
            f"{len(summary.skipped_entries)} skipped, {summary.bytes_written} bytes"
        )
        return summary

    async def _walk_directory(
        self,
        repo: RepositoryRef,
        remote_path: str,
        local_path: Path,
        root: str,
        summary: FetchSummary
    ) -> None:
        entries = await self.github_service.list_directory(repo, remote_path)
        pending: List[asyncio.Future] = []

        try:
            for entry in entries:
                self._raise_failed(pending)

                target = local_path / entry.name
                if self.config.verbose_logging:
                    logger.info(f"downloading {entry.kind.value} {target}")

                if self.matcher.is_excluded(relative_to_root(entry.path, root), entry.is_dir):
                    logger.debug(f"Skipping excluded {entry.path}")
                    summary.skipped_entries.append(entry.path)
                    continue

                if entry.is_dir:
                    make_directory(target)
                    summary.directories_created.append(target)
                    await self._walk_directory(repo, entry.path, target, root, summary)

                elif entry.is_file:
                    info = self._download_info(repo, entry, target)
                    if self.is_concurrent:
                        pending.append(asyncio.ensure_future(
                            self._download_with_semaphore(info, summary)
                        ))
                    else:
                        await self._download(info, summary)

                else:
                    logger.debug(f"Skipping unsupported {entry.kind.value} entry {entry.path}")
                    summary.skipped_entries.append(entry.path)

            if pending:
                await asyncio.gather(*pending)

        finally:
            await self._cancel_pending(pending)

    def _download_info(self, repo: RepositoryRef, entry: RemoteEntry, target: Path) -> FileDownloadInfo:
        return FileDownloadInfo(
            url=self.github_service.raw_url(repo, entry.path),
            destination=target,
            size=entry.size,
            sha=entry.sha,
        )

    async def _download(self, info: FileDownloadInfo, summary: FetchSummary) -> None:
        written = await self.download_service.fetch_file(info)
        summary.record_file(info.destination, written)

    async def _download_with_semaphore(self, info: FileDownloadInfo, summary: FetchSummary) -> None:
        async with self._semaphore:
            await self._download(info, summary)

    @staticmethod
    def _raise_failed(pending: List[asyncio.Future]) -> None:
        """Re-raise the first finished download that failed."""

        for task in pending:
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise task.exception()

    @staticmethod
    async def _cancel_pending(pending: List[asyncio.Future]) -> None:
        for task in pending:
            if not task.done():
                task.cancel()
        # Collects every outcome so no task exception goes unretrieved
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def relative_to_root(path: str, root: str) -> str:
    """Path of an entry relative to the directory the walk started from."""

    path = path.strip("/")
    if root and path.startswith(root + "/"):
        return path[len(root) + 1:]
    return path


def make_directory(path: Path) -> None:
    """Create a local directory, tolerating one that already exists."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LocalIOError(f"cannot create directory {path}", e) from e


__all__ = ["TreeWalker", "make_directory", "relative_to_root"]
