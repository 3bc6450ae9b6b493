"""
Shared fixtures: an in-memory GitHub serving listings and raw files.
"""

from typing import Dict, List, Optional

import httpx
import pytest

from twiglet.core.integrity import blob_hash
from twiglet.infrastructure.logger import logger


API_HOST = "api.github.com"
RAW_HOST = "raw.githubusercontent.com"


class FakeGitHub:
    """
    Serves the contents API and the raw host for a single repository.

    Files added with add_file() are registered in their parent listings,
    creating directory entries on the way, in insertion order.
    """

    def __init__(self, owner: str = "owner", name: str = "repo", branch: str = "main"):
        self.owner = owner
        self.name = name
        self.branch = branch
        self.listings: Dict[str, List[dict]] = {"": []}
        self.files: Dict[str, bytes] = {}
        self.overrides: Dict[str, httpx.Response] = {}
        self.requests: List[httpx.Request] = []

    # -- repository content ------------------------------------------------

    def add_dir(self, path: str) -> None:
        path = path.strip("/")
        if not path or path in self.listings:
            return
        parent, _, leaf = path.rpartition("/")
        self.add_dir(parent)
        self.listings[path] = []
        self.listings[parent].append({
            "name": leaf,
            "path": path,
            "type": "dir",
            "sha": "0" * 40,
            "size": 0,
        })

    def add_file(
        self,
        path: str,
        content: bytes,
        size: Optional[int] = None,
        sha: Optional[str] = None
    ) -> None:
        path = path.strip("/")
        parent, _, leaf = path.rpartition("/")
        self.add_dir(parent)
        self.files[path] = content
        self.listings[parent].append({
            "name": leaf,
            "path": path,
            "type": "file",
            "sha": sha if sha is not None else blob_hash(content),
            "size": size if size is not None else len(content),
        })

    def add_entry(self, parent: str, entry: dict) -> None:
        self.listings[parent.strip("/")].append(entry)

    # -- transport ---------------------------------------------------------

    @property
    def contents_prefix(self) -> str:
        return f"/repos/{self.owner}/{self.name}/contents"

    @property
    def raw_prefix(self) -> str:
        return f"/{self.owner}/{self.name}/{self.branch}/"

    def contents_path(self, path: str) -> str:
        return f"{self.contents_prefix}/{path.strip('/')}"

    def raw_path(self, path: str) -> str:
        return f"{self.raw_prefix}{path.strip('/')}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.overrides:
            return self.overrides[path]

        if request.url.host == API_HOST and path.startswith(self.contents_prefix):
            listing = self.listings.get(path[len(self.contents_prefix):].strip("/"))
            if listing is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=listing)

        if request.url.host == RAW_HOST and path.startswith(self.raw_prefix):
            content = self.files.get(path[len(self.raw_prefix):])
            if content is None:
                return httpx.Response(404, text="404: Not Found")
            return httpx.Response(200, content=content)

        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    # -- assertions helpers ------------------------------------------------

    @property
    def listed_paths(self) -> List[str]:
        return [
            request.url.path[len(self.contents_prefix):].strip("/")
            for request in self.requests
            if request.url.host == API_HOST
        ]

    @property
    def downloaded_paths(self) -> List[str]:
        return [
            request.url.path[len(self.raw_prefix):]
            for request in self.requests
            if request.url.host == RAW_HOST
        ]


@pytest.fixture
def fake_github():
    """A FakeGitHub for owner/repo on branch main."""
    return FakeGitHub()


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler and level changes made to the twiglet logger by a test."""
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
