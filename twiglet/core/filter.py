"""
Exclusion matching of listing entries against ignore-file style patterns.
"""

from typing import Iterable

import pathspec


class ExclusionMatcher:
    """
    Compiled set of exclusion patterns.

    Patterns follow ``.gitignore`` semantics (``*``, ``**``, leading ``/``
    anchors, trailing ``/`` for directories, ``!`` negation with the last
    matching pattern winning). Compile once per traversal and reuse.
    """

    def __init__(self, patterns: Iterable[str]):
        self.patterns = [pattern for pattern in patterns if pattern.strip()]
        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def is_excluded(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Check whether a path, relative to the fetched root, is excluded.

        Args:
            relative_path: POSIX style path of the entry below the fetch root
            is_dir: Directories are matched with a trailing slash so
                directory-only patterns apply to them

        Returns:
            True if the entry should be skipped
        """

        if not self.patterns:
            return False

        candidate = relative_path.strip("/")
        if is_dir:
            candidate += "/"
        return self._spec.match_file(candidate)
