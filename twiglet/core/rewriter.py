"""
Literal byte substitutions applied to file content before it is written.
"""

from typing import Iterable, Tuple


class ContentRewriter:
    """Ordered literal search and replace over a whole file body."""

    def __init__(self, replacements: Iterable[Tuple[bytes, bytes]]):
        self.replacements = tuple(replacements)

    def __bool__(self) -> bool:
        return bool(self.replacements)

    def apply(self, data: bytes) -> bytes:
        """
        Replace every occurrence of each search key, in insertion order.

        Each rule runs over the output of the previous one, so with
        ``{b"A": b"B", b"B": b"C"}`` an ``A`` ends up as ``C``.
        """

        for search, replacement in self.replacements:
            data = data.replace(search, replacement)
        return data
