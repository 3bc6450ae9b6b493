"""
Thin client for the GitHub contents API and the raw content host.
"""

from typing import Dict, List
from urllib.parse import quote

import httpx

from ..infrastructure.error_handler import (
    DecodeError, ListingError, RateLimited, handle_transport_error
)
from ..infrastructure.logger import logger
from ..infrastructure.rate_limit import RateLimitInfo
from ..models import RemoteEntry, RepositoryRef, SessionConfiguration, parse_listing


RATE_LIMIT_STATUSES = (403, 429)


def _quote_path(path: str) -> str:
    return quote(path.strip("/"), safe="/")


class GitHubAPIService:
    """Builds GitHub URLs and performs the directory listing requests."""

    def __init__(self, client: httpx.AsyncClient, config: SessionConfiguration):
        self.client = client
        self.config = config

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            **self.config.auth_headers(),
        }

    def contents_url(self, repo: RepositoryRef, path: str) -> str:
        return (
            f"{self.config.api_url}/repos/{repo.owner}/{repo.name}"
            f"/contents/{_quote_path(path)}"
        )

    def raw_url(self, repo: RepositoryRef, path: str) -> str:
        return (
            f"{self.config.raw_url}/{repo.owner}/{repo.name}"
            f"/{quote(self.config.branch, safe='/')}/{_quote_path(path)}"
        )

    @handle_transport_error(
        ListingError,
        lambda self, repo, path: f"listing request failed for {repo.full_name}:/{path.strip('/')}"
    )
    async def list_directory(self, repo: RepositoryRef, path: str) -> List[RemoteEntry]:
        """
        List one directory of the repository at the configured branch.

        Args:
            repo: Repository to list
            path: Directory path from the repository root

        Returns:
            Entries in the order the API returned them

        Raises:
            RateLimited: On HTTP 403 or 429
            ListingError: On any other non-success status or transport failure
            DecodeError: If the body is not a directory listing
        """

        url = self.contents_url(repo, path)
        logger.debug(f"Listing {url} (ref={self.config.branch})")

        response = await self.client.get(
            url,
            params={"ref": self.config.branch},
            headers=self.headers,
            timeout=self.config.timeout,
        )

        if response.status_code in RATE_LIMIT_STATUSES:
            info = RateLimitInfo.from_headers(response.headers)
            detail = info.describe()
            raise RateLimited(
                "github api rate limit exceeded, consider using an auth token "
                "(--auth or GITHUB_TOKEN) to get a higher rate limit"
                + (f" ({detail})" if detail else "")
            )
        if not response.is_success:
            raise ListingError(
                f"encountered an error with request: {url} (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"listing response from {url} is not valid JSON", e) from e

        return parse_listing(payload)


__all__ = ["GitHubAPIService"]
