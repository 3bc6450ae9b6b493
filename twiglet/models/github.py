"""
GitHub domain models for twiglet.

This module contains strongly typed data classes and enums representing
GitHub-specific entities returned by, or sent to, the hosting API.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from ..infrastructure.error_handler import DecodeError, InvalidRepoReference


DEFAULT_BRANCH = "main"


class EntryKind(Enum):
    """Kinds of items a contents listing can return."""

    DIR = "dir"
    FILE = "file"
    SYMLINK = "symlink"
    SUBMODULE = "submodule"


@dataclass(frozen=True)
class RepositoryRef:
    """
    Immutable reference to a remote repository and the branch to read.

    A ``branch`` or ``auth_token`` of None leaves the choice to the
    session configuration.
    """

    owner: str
    name: str
    branch: Optional[str] = None
    auth_token: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f'{self.owner}/{self.name}'

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise InvalidRepoReference("Repository owner and name are required")
        if self.branch is not None and not self.branch:
            raise InvalidRepoReference("Repository branch must not be empty")

    @classmethod
    def parse(
        cls,
        identifier: str,
        branch: Optional[str] = None,
        auth_token: Optional[str] = None
    ) -> "RepositoryRef":
        """
        Build a reference from an ``owner/name`` identifier.

        A leading ``github.com/`` is accepted and stripped, full URLs are not.

        Raises:
            InvalidRepoReference: If the identifier is a URL or malformed
        """

        if "https://" in identifier:
            raise InvalidRepoReference(
                f"repo should not be an url (e.g. owner/name or github.com/owner/name): {identifier}"
            )

        if identifier.startswith("github.com/"):
            identifier = identifier[len("github.com/"):]

        parts = identifier.split("/")
        if len(parts) != 2 or not all(parts):
            raise InvalidRepoReference(
                f"repo must have the form owner/name: {identifier!r}"
            )

        owner, name = parts
        return cls(owner=owner, name=name, branch=branch, auth_token=auth_token)


@dataclass(frozen=True)
class RemoteEntry:
    """One item of a directory listing."""

    name: str
    path: str
    kind: EntryKind
    sha: str
    size: int

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @classmethod
    def from_api(cls, item: Any) -> "RemoteEntry":
        """
        Decode one listing item, validating every field it relies on.

        Raises:
            DecodeError: If a field is missing or has the wrong type
        """

        if not isinstance(item, dict):
            raise DecodeError(f"listing entry is not an object: {item!r}")

        for key in ("name", "path", "type", "sha"):
            if not isinstance(item.get(key), str):
                raise DecodeError(f"listing entry field {key!r} is missing or not a string")

        # name becomes one local path component
        name = item["name"]
        if name in ("", ".", "..") or "/" in name or "\\" in name:
            raise DecodeError(f"listing entry name is not a plain file name: {name!r}")

        size = item.get("size")
        # bool is an int subclass
        if not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise DecodeError(f"listing entry field 'size' is invalid: {size!r}")

        try:
            kind = EntryKind(item["type"])
        except ValueError as e:
            raise DecodeError(f"unknown listing entry type: {item['type']!r}", e)

        return cls(
            name=name,
            path=item["path"],
            kind=kind,
            sha=item["sha"],
            size=size,
        )


def parse_listing(payload: Any) -> List[RemoteEntry]:
    """
    Decode a contents listing response body.

    Raises:
        DecodeError: If the payload is not a list of well-formed entries
    """

    if not isinstance(payload, list):
        raise DecodeError(
            f"expected a directory listing, got {type(payload).__name__}"
        )
    return [RemoteEntry.from_api(item) for item in payload]


__all__ = [
    "DEFAULT_BRANCH",
    "EntryKind",
    "RepositoryRef",
    "RemoteEntry",
    "parse_listing",
]
