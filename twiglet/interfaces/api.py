"""
Python API for fetching a repository subtree.

Example:
    >>> import asyncio
    >>> from twiglet import SessionConfiguration, fetch_subtree
    >>> config = SessionConfiguration(branch="main", exclusion_patterns=["*.md"])
    >>> asyncio.run(fetch_subtree("owner/repo", "/src", "out", config))
"""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import httpx

from ..core.orchestrator import TreeWalker, make_directory
from ..infrastructure.error_handler import TransferError
from ..infrastructure.logger import logger
from ..models import FetchSummary, RepositoryRef, SessionConfiguration
from ..models.config import ReplaceKey
from ..services import DownloadService, GitHubAPIService


RepositoryLike = Union[str, RepositoryRef]


def resolve_repository(repo: RepositoryLike, config: SessionConfiguration) -> RepositoryRef:
    """
    Turn an identifier or reference into a RepositoryRef.

    The branch and token a reference leaves unset are taken from the
    configuration; identifiers take both from it.

    Raises:
        InvalidRepoReference: If the identifier is malformed
    """

    if not isinstance(repo, RepositoryRef):
        return RepositoryRef.parse(repo, branch=config.branch, auth_token=config.auth_token)
    return replace(
        repo,
        branch=repo.branch or config.branch,
        auth_token=repo.auth_token or config.auth_token,
    )


async def fetch_subtree(
    repo: RepositoryLike,
    remote_path: str,
    local_path: Union[str, Path],
    config: Optional[SessionConfiguration] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    deadline: Optional[float] = None
) -> FetchSummary:
    """
    Fetch ``remote_path`` of a repository into ``local_path``.

    Args:
        repo: ``owner/name`` identifier or RepositoryRef; a branch or token
            set on a RepositoryRef takes precedence over the configuration's
        remote_path: Directory inside the repository, ``/`` for the root
        local_path: Local directory, created if missing
        config: Session options, defaults to SessionConfiguration()
        client: HTTP client to use; one is created and closed if omitted
        deadline: Seconds allowed for the whole fetch

    Returns:
        FetchSummary of the completed fetch

    Raises:
        TwigletError: The first error met; nothing is retried
    """

    config = config or SessionConfiguration()
    repository = resolve_repository(repo, config)
    config = replace(config, branch=repository.branch, auth_token=repository.auth_token)

    if not config.verify_checksum and config.verbose_logging:
        logger.warning("checksum disabled: downloaded files can be corrupted")

    destination = Path(local_path)
    make_directory(destination)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)

    try:
        walker = TreeWalker(
            GitHubAPIService(client, config),
            DownloadService(client, config),
            config
        )
        walk = walker.walk(repository, remote_path, destination)
        if deadline is None:
            return await walk

        try:
            return await asyncio.wait_for(walk, deadline)
        except asyncio.TimeoutError as e:
            raise TransferError(
                f"deadline of {deadline}s exceeded while fetching {repository.full_name}", e
            ) from e

    finally:
        if owns_client:
            await client.aclose()


def fetch_subtree_sync(
    repo: RepositoryLike,
    remote_path: str,
    local_path: Union[str, Path],
    config: Optional[SessionConfiguration] = None,
    *,
    deadline: Optional[float] = None
) -> FetchSummary:
    """Blocking wrapper around fetch_subtree."""

    return asyncio.run(
        fetch_subtree(repo, remote_path, local_path, config, deadline=deadline)
    )


####
##      DOWNLOADER FACADE
#####
class SubtreeDownloader:
    """
    Convenience facade keeping a token and session options across fetches.

    The package logger's level is only touched when ``verbose`` is given
    or set_verbose() is called.
    """

    def __init__(
        self,
        auth_token: Optional[str] = None,
        verbose: Optional[bool] = None,
        config: Optional[SessionConfiguration] = None
    ):
        self.auth_token = auth_token
        self.config = config or SessionConfiguration()
        if auth_token:
            self.config = replace(self.config, auth_token=auth_token)
        self.verbose = bool(verbose)
        if verbose is not None:
            self.set_verbose(verbose)

    def set_verbose(self, verbose: bool) -> None:
        """Switch the package logger between DEBUG and INFO."""

        self.verbose = verbose
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    async def download(
        self,
        repo: RepositoryLike,
        remote_path: str,
        destination: Union[str, Path],
        *,
        branch: Optional[str] = None,
        exclude: Optional[Iterable[str]] = None,
        replace_rules: Optional[Mapping[ReplaceKey, ReplaceKey]] = None,
        verify_checksum: Optional[bool] = None,
        deadline: Optional[float] = None
    ) -> FetchSummary:
        """
        Fetch a subtree, overriding selected options for this call only.

        ``branch`` also replaces the branch of a RepositoryRef ``repo``.
        """

        overrides = {}
        if branch is not None:
            overrides["branch"] = branch
            if isinstance(repo, RepositoryRef):
                repo = replace(repo, branch=branch)
        if exclude is not None:
            overrides["exclusion_patterns"] = list(exclude)
        if replace_rules is not None:
            overrides["replace_rules"] = replace_rules
        if verify_checksum is not None:
            overrides["verify_checksum"] = verify_checksum

        config = replace(self.config, **overrides) if overrides else self.config
        return await fetch_subtree(repo, remote_path, destination, config, deadline=deadline)

    def run(
        self,
        repo: RepositoryLike,
        remote_path: str,
        destination: Union[str, Path],
        **options
    ) -> FetchSummary:
        """Blocking variant of download()."""

        return asyncio.run(self.download(repo, remote_path, destination, **options))


__all__ = [
    "fetch_subtree",
    "fetch_subtree_sync",
    "resolve_repository",
    "SubtreeDownloader",
]
