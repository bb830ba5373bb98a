"""
Canonical node paths.

A path is a tuple of segments whose first element is always the root marker.
Mapping keys and sequence indices (as decimal strings) follow it:

    root            -> the whole tree
    root.user.name  -> tree["user"]["name"]
    root.items.0    -> tree["items"][0]

Reference strings use the configured key separator and never contain the
root marker. A reference starting with the separator is absolute: it is
looked up from the root only, bypassing the scope search.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .exceptions import MalformedPathError

ROOT = "root"


@dataclass(frozen=True)
class NodePath:
    """Immutable, hashable address of a node in the tree."""

    segments: tuple[str, ...] = (ROOT,)

    @classmethod
    def root(cls) -> NodePath:
        return cls((ROOT,))

    @property
    def is_root(self) -> bool:
        return len(self.segments) == 1

    @property
    def last(self) -> str:
        return self.segments[-1]

    def join(self, segment: str | int) -> NodePath:
        return NodePath(self.segments + (str(segment),))

    def extend(self, segments: Iterable[str]) -> NodePath:
        return NodePath(self.segments + tuple(segments))

    def parent(self) -> NodePath:
        if self.is_root:
            raise MalformedPathError(ROOT, "the root node has no parent")
        return NodePath(self.segments[:-1])

    def is_descendant_of(self, other: NodePath) -> bool:
        """True for strict descendants of ``other``."""
        n = len(other.segments)
        return len(self.segments) > n and self.segments[:n] == other.segments

    def to_string(self, separator: str = ".") -> str:
        return separator.join(self.segments)

    def __str__(self) -> str:
        return self.to_string()


def is_absolute(text: str, separator: str = ".") -> bool:
    """True if the reference string is anchored at the root."""
    return text.startswith(separator)


def parse_path(text: str, separator: str = ".") -> list[str]:
    """
    Split a reference string into segments.

    A single leading separator (absolute marker) is dropped; callers check
    ``is_absolute`` first when they need to know about it.

    Raises:
        MalformedPathError: Empty string, bare separator, or empty segment

    Examples:
        >>> parse_path("a.b.0")
        ['a', 'b', '0']
        >>> parse_path(".c")
        ['c']
    """
    if not text:
        raise MalformedPathError(text, "empty path")

    body = text[len(separator) :] if is_absolute(text, separator) else text
    if not body:
        raise MalformedPathError(text, "path has no segments")

    segments = body.split(separator)
    if any(segment == "" for segment in segments):
        raise MalformedPathError(text, "path has an empty segment")
    return segments
