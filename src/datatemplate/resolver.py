"""
Scope-aware reference resolution.

References are looked up the way lexical variables are: first in the scope
of the referencing key, then in each enclosing scope, then at the root.

    { a: { b: "=c", c: 2 }, c: 1 }   # a.b -> 2 (innermost scope wins)
    { a: { b: "=c" }, c: 1 }         # a.b -> 1 (enclosing scope)
    { a: { b: "=.c", c: 2 }, c: 1 }  # a.b -> 1 (absolute, root only)
"""

from __future__ import annotations

import logging
from typing import Any

from .paths import NodePath, is_absolute, parse_path
from .store import MISSING, EvaluateFn, NodeStore

logger = logging.getLogger(__name__)


class ScopeResolver:
    """
    Resolve reference strings to evaluated nodes.

    Args:
        store: Node store of the current render
        evaluate: Evaluator callback used for every node loaded
        separator: Configured key separator
    """

    def __init__(self, store: NodeStore, evaluate: EvaluateFn, separator: str = "."):
        self.store = store
        self.evaluate = evaluate
        self.separator = separator

    def resolve(self, reference: str, from_path: NodePath) -> Any:
        """
        Find the node a reference points to, as seen from ``from_path``.

        Search order:
        1. Absolute reference: root only
        2. Enclosing scopes, from parent(from_path) out to root.
           The referencing path itself is never a candidate.
        3. Root (final absolute fallback)

        Returns:
            The evaluated node, or MISSING if nothing matched
        """
        segments = parse_path(reference, self.separator)
        root = NodePath.root()

        if is_absolute(reference, self.separator):
            return self.store.load(root.extend(segments), self.evaluate)

        scope = from_path.parent() if not from_path.is_root else root
        while True:
            candidate = scope.extend(segments)
            if candidate != from_path:
                node = self.store.load(candidate, self.evaluate)
                if node is not MISSING:
                    return node
            if scope.is_root:
                break
            scope = scope.parent()

        node = self.store.load(root.extend(segments), self.evaluate)
        if node is MISSING:
            logger.debug("Unresolved reference %r from %s", reference, from_path)
        return node
