"""
Node store: the live tree plus the per-render evaluation cache.

The store is the only component that reads or writes the tree. Every other
component goes through it:

    get()                 raw walk, no evaluation
    load()                walk that evaluates every node it passes through
    cached_or_evaluate()  the single point where a path is evaluated
    write()               nested-key merges

Once a path is cached it is never evaluated again during the render, unless
a nested-key write invalidates it.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from typing import Any

from .exceptions import TypeMismatchError
from .paths import NodePath

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel for "no node at this path" (distinct from a ``None`` scalar)."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

SCALAR_TYPES = (
    str,
    bytes,
    bool,
    int,
    float,
    datetime.date,
    datetime.time,
)

EvaluateFn = Callable[[NodePath, Any], Any]


def is_container(node: Any) -> bool:
    return isinstance(node, (dict, list))


def is_scalar(node: Any) -> bool:
    return node is None or isinstance(node, SCALAR_TYPES)


def _as_index(segment: str) -> int | None:
    # Only plain decimal strings address sequence items
    if segment.isdecimal():
        return int(segment)
    return None


class NodeStore:
    """
    Owns the tree being rendered and the path -> resolved node cache.

    A single render call exclusively owns one store. The tree is mutated in
    place: evaluated values replace raw ones in their parent's slot.

    Example:
        store = NodeStore({"a": {"b": 1}})
        store.get(NodePath.root().join("a").join("b"))  # 1
    """

    def __init__(self, root: Any):
        self.root = root
        self._cache: dict[NodePath, Any] = {}
        self.evaluations = 0

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def is_cached(self, path: NodePath) -> bool:
        return path in self._cache

    def peek(self, path: NodePath) -> Any:
        return self._cache.get(path, MISSING)

    def register(self, path: NodePath, node: Any) -> None:
        """Cache a node before its evaluation finishes (containers only)."""
        self._cache[path] = node

    def invalidate(self, path: NodePath) -> None:
        """Drop the cache entry for ``path`` and every entry below it."""
        stale = [p for p in self._cache if p == path or p.is_descendant_of(path)]
        for p in stale:
            del self._cache[p]
        if stale:
            logger.debug("Invalidated %d cache entries under %s", len(stale), path)

    def cached_or_evaluate(self, path: NodePath, node: Any, evaluate: EvaluateFn) -> Any:
        """
        Return the cached result for ``path`` or evaluate ``node`` there.

        Args:
            path: Location of the node
            node: Raw node found at that location
            evaluate: Callback doing the actual evaluation

        Returns:
            The resolved node
        """
        if path in self._cache:
            return self._cache[path]

        self.evaluations += 1
        try:
            result = evaluate(path, node)
        except Exception:
            # A container registered before the failure is incomplete.
            # Children that finished stay cached.
            self._cache.pop(path, None)
            raise
        self._cache[path] = result
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _child(self, node: Any, segment: str, path: NodePath) -> Any:
        if isinstance(node, dict):
            return node.get(segment, MISSING)
        if isinstance(node, list):
            index = _as_index(segment)
            if index is None or index >= len(node):
                return MISSING
            return node[index]
        raise TypeMismatchError(str(path), segment)

    def get(self, path: NodePath) -> Any:
        """
        Walk the live tree without evaluating anything.

        Returns:
            The raw node, or MISSING if a key is absent or an index is out of range

        Raises:
            TypeMismatchError: An intermediate segment addresses into a scalar
        """
        node = self.root
        current = NodePath.root()
        for segment in path.segments[1:]:
            node = self._child(node, segment, current)
            if node is MISSING:
                return MISSING
            current = current.join(segment)
        return node

    def load(self, path: NodePath, evaluate: EvaluateFn) -> Any:
        """
        Walk the tree, evaluating every node on the way (intermediates included).

        Following substitutions on intermediates is what makes ``=a.c`` work
        when ``a`` is itself ``=b``.

        A scalar root has no children, so nothing below it is ever found.
        """
        if not is_container(self.root) and not path.is_root:
            return MISSING

        current = NodePath.root()
        node = self.cached_or_evaluate(current, self.root, evaluate)
        for segment in path.segments[1:]:
            child = self._child(node, segment, current)
            if child is MISSING:
                return MISSING
            current = current.join(segment)
            node = self.cached_or_evaluate(current, child, evaluate)
        return node

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, path: NodePath, value: Any, evaluate: EvaluateFn) -> bool:
        """
        Evaluate ``value`` at ``path`` and store it in the parent's slot.

        Missing intermediates, intermediates that are scalars, and sequence
        indices past the end are soft failures: nothing is written and False
        is returned.

        Returns:
            True if the value was written
        """
        parent_path = path.parent()
        try:
            container = self.load(parent_path, evaluate)
        except TypeMismatchError as e:
            logger.debug(f"Dropping nested key for {path}: {e}")
            return False

        if container is MISSING or not is_container(container):
            logger.debug(f"Dropping nested key for {path}: no container at {parent_path}")
            return False

        index = None
        if isinstance(container, list):
            index = _as_index(path.last)
            if index is None or index > len(container):
                logger.debug(f"Dropping nested key for {path}: index out of range")
                return False

        self.invalidate(path)
        resolved = self.cached_or_evaluate(path, value, evaluate)

        if index is None:
            container[path.last] = resolved
        elif index == len(container):
            container.append(resolved)
        else:
            container[index] = resolved
        return True
