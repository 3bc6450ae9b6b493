import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from twiglet.core.integrity import blob_hash
from twiglet.core.orchestrator import TreeWalker
from twiglet.infrastructure.error_handler import (
    ChecksumMismatch, DecodeError, LocalIOError, ListingError, RateLimited, TransferError
)
from twiglet.models import (
    EntryKind, FileDownloadInfo, RemoteEntry, RepositoryRef, SessionConfiguration
)
from twiglet.services import DownloadService, GitHubAPIService

# Mark all tests in this file as asyncio
pytestmark = pytest.mark.asyncio

REPO = RepositoryRef("owner", "repo")


# ---- Helpers ---------------------------------------------------------------

def make_walker(client: httpx.AsyncClient, **options) -> TreeWalker:
    config = SessionConfiguration(**options)
    return TreeWalker(
        GitHubAPIService(client, config),
        DownloadService(client, config),
        config
    )


def make_entry(path: str, kind: EntryKind = EntryKind.FILE, size: int = 1) -> RemoteEntry:
    return RemoteEntry(
        name=path.rsplit("/", 1)[-1], path=path, kind=kind, sha="0" * 40, size=size
    )


# ---- End to end through the fake host --------------------------------------

async def test_src_subtree_scenario(fake_github, tmp_path):
    """One directory and one 120 byte file below /src."""
    content = b"x" * 120
    fake_github.add_dir("src/utils")
    fake_github.add_file("src/index.js", content)

    async with fake_github.client() as client:
        summary = await make_walker(client).walk(REPO, "/src", tmp_path)

    assert (tmp_path / "utils").is_dir()
    index = tmp_path / "index.js"
    assert index.read_bytes() == content
    assert blob_hash(index.read_bytes()) == fake_github.listings["src"][1]["sha"]
    assert fake_github.listed_paths == ["src", "src/utils"]
    assert summary.files_written == [index]
    assert summary.bytes_written == 120


async def test_recursion_uses_the_declared_entry_path(fake_github, tmp_path):
    """The API's path is used for the next listing, not parent + name."""
    fake_github.listings["src"] = [{
        "name": "alias", "path": "canonical/location", "type": "dir", "sha": "0" * 40, "size": 0,
    }]
    fake_github.listings["canonical/location"] = []

    async with fake_github.client() as client:
        await make_walker(client).walk(REPO, "src", tmp_path)

    assert fake_github.listed_paths == ["src", "canonical/location"]
    assert (tmp_path / "alias").is_dir()


async def test_excluded_entry_does_not_stop_its_siblings(fake_github, tmp_path):
    """Regression: excluding entry 2 of 4 must still process entries 3 and 4."""
    for name in ("a.txt", "b.md", "c.txt", "d.txt"):
        fake_github.add_file(name, name.encode())

    async with fake_github.client() as client:
        summary = await make_walker(client, exclusion_patterns=["*.md"]).walk(REPO, "/", tmp_path)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["a.txt", "c.txt", "d.txt"]
    assert fake_github.downloaded_paths == ["a.txt", "c.txt", "d.txt"]
    assert summary.skipped_entries == ["b.md"]


async def test_excluded_directory_is_not_listed(fake_github, tmp_path):
    fake_github.add_file("lib/keep.py", b"keep")
    fake_github.add_file("lib/tests/test_x.py", b"skip")

    async with fake_github.client() as client:
        await make_walker(client, exclusion_patterns=["tests/"]).walk(REPO, "lib", tmp_path)

    assert (tmp_path / "keep.py").exists()
    assert not (tmp_path / "tests").exists()
    assert "lib/tests" not in fake_github.listed_paths


async def test_exclusions_are_relative_to_the_fetch_root(fake_github, tmp_path):
    fake_github.add_file("src/config.json", b"{}")
    fake_github.add_file("src/nested/config.json", b"{}")

    async with fake_github.client() as client:
        await make_walker(client, exclusion_patterns=["/config.json"]).walk(REPO, "src", tmp_path)

    assert not (tmp_path / "config.json").exists()
    assert (tmp_path / "nested" / "config.json").exists()


async def test_file_error_aborts_remaining_siblings(fake_github, tmp_path):
    fake_github.add_file("a.txt", b"a")
    fake_github.add_file("bad.txt", b"bad", sha="f" * 40)
    fake_github.add_file("c.txt", b"c")

    async with fake_github.client() as client:
        with pytest.raises(ChecksumMismatch):
            await make_walker(client).walk(REPO, "/", tmp_path)

    assert (tmp_path / "a.txt").exists()
    assert not (tmp_path / "bad.txt").exists()
    assert not (tmp_path / "c.txt").exists()
    assert fake_github.downloaded_paths == ["a.txt", "bad.txt"]


async def test_subdirectory_failure_propagates(fake_github, tmp_path):
    fake_github.add_file("pkg/sub/missing.txt", b"data")
    fake_github.add_file("pkg/after.txt", b"after")
    del fake_github.files["pkg/sub/missing.txt"]

    async with fake_github.client() as client:
        with pytest.raises(TransferError):
            await make_walker(client).walk(REPO, "pkg", tmp_path)

    assert not (tmp_path / "after.txt").exists()


async def test_rate_limited_listing(fake_github, tmp_path):
    fake_github.overrides[fake_github.contents_path("src")] = httpx.Response(
        403, json={"message": "API rate limit exceeded"}
    )

    async with fake_github.client() as client:
        with pytest.raises(RateLimited) as excinfo:
            await make_walker(client).walk(REPO, "src", tmp_path)

    assert "auth token" in str(excinfo.value)


async def test_missing_directory_is_a_listing_error(fake_github, tmp_path):
    async with fake_github.client() as client:
        with pytest.raises(ListingError) as excinfo:
            await make_walker(client).walk(REPO, "does/not/exist", tmp_path)

    assert excinfo.value.status_code == 404


async def test_symlinks_and_submodules_are_skipped(fake_github, tmp_path):
    fake_github.add_entry("", {"name": "link", "path": "link", "type": "symlink", "sha": "1" * 40, "size": 4})
    fake_github.add_entry("", {"name": "vendor", "path": "vendor", "type": "submodule", "sha": "2" * 40, "size": 0})
    fake_github.add_file("real.txt", b"real")

    async with fake_github.client() as client:
        summary = await make_walker(client).walk(REPO, "/", tmp_path)

    assert [p.name for p in tmp_path.iterdir()] == ["real.txt"]
    assert summary.skipped_entries == ["link", "vendor"]


@pytest.mark.parametrize("name", ["../escaped.txt", "..", "nested/escaped.txt"])
async def test_entry_names_cannot_leave_the_output_directory(fake_github, tmp_path, name):
    content = b"outside"
    fake_github.files["x"] = content
    fake_github.add_entry("", {
        "name": name, "path": "x", "type": "file", "sha": blob_hash(content), "size": len(content),
    })
    out = tmp_path / "out"
    out.mkdir()

    async with fake_github.client() as client:
        with pytest.raises(DecodeError):
            await make_walker(client).walk(REPO, "/", out)

    assert not (tmp_path / "escaped.txt").exists()
    assert list(out.iterdir()) == []
    assert fake_github.downloaded_paths == []


async def test_repeated_fetch_is_byte_identical(fake_github, tmp_path):
    fake_github.add_file("docs/a.txt", b"alpha")
    fake_github.add_file("docs/deep/b.bin", bytes(range(256)))

    first, second = tmp_path / "first", tmp_path / "second"
    for destination in (first, second, first):
        destination.mkdir(exist_ok=True)
        async with fake_github.client() as client:
            await make_walker(client).walk(REPO, "docs", destination)

    for relative in ("a.txt", "deep/b.bin"):
        assert (first / relative).read_bytes() == (second / relative).read_bytes()


async def test_verbose_logging_reports_planned_actions(fake_github, tmp_path):
    fake_github.add_file("one.txt", b"1")

    async with fake_github.client() as client:
        with patch("twiglet.core.orchestrator.logger") as mock_logger:
            await make_walker(client, verbose_logging=True).walk(REPO, "/", tmp_path)

    mock_logger.info.assert_called_with(f"downloading file {tmp_path / 'one.txt'}")


async def test_directory_blocked_by_file_raises_local_io_error(fake_github, tmp_path):
    fake_github.add_file("pkg/inner.txt", b"x")
    (tmp_path / "pkg").write_text("in the way")

    async with fake_github.client() as client:
        with pytest.raises(LocalIOError):
            await make_walker(client).walk(REPO, "/", tmp_path)


# ---- Concurrency -------------------------------------------------------------

async def test_concurrent_downloads_write_every_file(fake_github, tmp_path):
    for index in range(8):
        fake_github.add_file(f"many/f{index}.txt", f"file {index}".encode())
    fake_github.add_file("many/sub/g.txt", b"nested")

    async with fake_github.client() as client:
        summary = await make_walker(client, max_concurrent_downloads=3).walk(REPO, "many", tmp_path)

    assert len(summary.files_written) == 9
    for index in range(8):
        assert (tmp_path / f"f{index}.txt").read_bytes() == f"file {index}".encode()
    assert (tmp_path / "sub" / "g.txt").read_bytes() == b"nested"


async def test_concurrent_downloads_respect_the_limit(tmp_path):
    config = SessionConfiguration(max_concurrent_downloads=2)
    github_service = MagicMock()
    github_service.list_directory = AsyncMock(
        return_value=[make_entry(f"f{i}.txt") for i in range(6)]
    )
    github_service.raw_url = MagicMock(side_effect=lambda repo, path: f"https://raw/{path}")

    active = 0
    peak = 0

    async def fake_fetch(info: FileDownloadInfo) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return 1

    download_service = MagicMock()
    download_service.fetch_file = AsyncMock(side_effect=fake_fetch)

    walker = TreeWalker(github_service, download_service, config)
    summary = await walker.walk(REPO, "/", tmp_path)

    assert peak == 2
    assert download_service.fetch_file.await_count == 6
    assert len(summary.files_written) == 6


async def test_concurrent_failure_cancels_outstanding_downloads(tmp_path):
    config = SessionConfiguration(max_concurrent_downloads=4)
    github_service = MagicMock()
    github_service.list_directory = AsyncMock(
        return_value=[make_entry(f"f{i}.txt") for i in range(4)]
    )
    github_service.raw_url = MagicMock(side_effect=lambda repo, path: path)

    cancelled = []

    async def fake_fetch(info: FileDownloadInfo) -> int:
        if info.url == "f0.txt":
            raise TransferError("boom")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(info.url)
            raise
        return 1

    download_service = MagicMock()
    download_service.fetch_file = AsyncMock(side_effect=fake_fetch)

    walker = TreeWalker(github_service, download_service, config)
    with pytest.raises(TransferError):
        await walker.walk(REPO, "/", tmp_path)

    assert sorted(cancelled) == ["f1.txt", "f2.txt", "f3.txt"]

