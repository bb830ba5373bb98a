"""
Recursive tree evaluator.

Each node is dispatched by kind:

    str matching "<tag> path"   substitution: the referenced node, verbatim
    other str                   template: rendered by Jinja2
    other scalar / None         unchanged
    list                        items evaluated in ascending index order
    dict                        keys evaluated in sorted order; nested keys
                                ("a.b=") are removed and merged deeper

All evaluation goes through NodeStore.cached_or_evaluate, so every path is
evaluated at most once per render. A nested-key write is the only thing that
forces a path to be evaluated again, apart from an evaluation that failed
and was abandoned (see TreeContext).

State per path: Unvisited -> InProgress -> Cached. Reaching a string node
that is already InProgress means it depends on itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from jinja2 import Environment

from .config import RenderConfig
from .exceptions import CycleDetectedError, InvalidNodeKindError, RecursionDepthExceededError
from .paths import NodePath, is_absolute, parse_path
from .resolver import ScopeResolver
from .store import MISSING, NodeStore, is_container, is_scalar
from .template import TemplateAdapter

logger = logging.getLogger(__name__)


@dataclass
class EvaluationContext:
    """Everything one render call owns. Discarded when the render returns."""

    config: RenderConfig
    store: NodeStore
    resolver: ScopeResolver
    templates: TemplateAdapter
    stack: list[NodePath] = field(default_factory=list)
    active: set[NodePath] = field(default_factory=set)
    rendering: set[NodePath] = field(default_factory=set)


class TreeEvaluator:
    """
    Evaluate one data tree.

    Example:
        evaluator = TreeEvaluator({"a": 1, "b": "=a"}, RenderConfig(), env)
        evaluator.run()  # {"a": 1, "b": 1}
    """

    def __init__(self, root: Any, config: RenderConfig, environment: Environment):
        store = NodeStore(root)
        resolver = ScopeResolver(store, self.evaluate, config.key_separator)
        self.context = EvaluationContext(
            config=config,
            store=store,
            resolver=resolver,
            templates=TemplateAdapter(environment, resolver),
        )
        self._substitution = re.compile(rf"^{re.escape(config.substitution_tag)}\s*(.+?)\s*$")

    def run(self) -> Any:
        """Evaluate the whole tree from the root and return the result."""
        return self.evaluate(NodePath.root(), self.context.store.root)

    def evaluate(self, path: NodePath, node: Any) -> Any:
        return self.context.store.cached_or_evaluate(path, node, self._evaluate_node)

    def _evaluate_node(self, path: NodePath, node: Any) -> Any:
        ctx = self.context

        tracked = isinstance(node, str)
        if tracked and path in ctx.active:
            raise CycleDetectedError(
                path.to_string(ctx.config.key_separator),
                [p.to_string(ctx.config.key_separator) for p in ctx.stack],
            )
        # Only strings follow references; plain nesting is bounded by the tree itself
        if tracked and len(ctx.active) >= ctx.config.max_depth:
            raise RecursionDepthExceededError(
                path.to_string(ctx.config.key_separator),
                len(ctx.active) + 1,
                ctx.config.max_depth,
            )

        ctx.stack.append(path)
        if tracked:
            ctx.active.add(path)
        try:
            if isinstance(node, dict):
                return self._evaluate_mapping(path, node)
            if isinstance(node, list):
                return self._evaluate_sequence(path, node)
            if isinstance(node, str):
                return self._evaluate_string(path, node)
            if is_scalar(node):
                return node
            raise InvalidNodeKindError(path.to_string(ctx.config.key_separator), node)
        finally:
            ctx.stack.pop()
            if tracked:
                ctx.active.discard(path)

    def _evaluate_string(self, path: NodePath, value: str) -> Any:
        ctx = self.context
        match = self._substitution.match(value)
        if not match:
            ctx.rendering.add(path)
            try:
                return ctx.templates.render(value, path)
            finally:
                ctx.rendering.discard(path)

        result = ctx.resolver.resolve(match.group(1), path)
        if result is MISSING:
            logger.debug(f"Substitution {value!r} at {path} found nothing")
            return None

        if is_container(result) and self._would_contain_itself(path, result):
            raise CycleDetectedError(
                path.to_string(ctx.config.key_separator),
                [p.to_string(ctx.config.key_separator) for p in ctx.stack[:-1]],
            )
        return result

    def _would_contain_itself(self, path: NodePath, result: Any) -> bool:
        """
        True if placing ``result`` at ``path`` makes a container hold itself.

        Candidates are the enclosing containers of ``path`` and every
        container still being evaluated on the way here, up to the nearest
        template render (a rendered string does not embed what it looks up).
        """
        ctx = self.context
        candidates = []
        ancestor = path
        while not ancestor.is_root:
            ancestor = ancestor.parent()
            candidates.append(ancestor)
        for entered in reversed(ctx.stack[:-1]):
            if entered in ctx.rendering:
                break
            candidates.append(entered)
        return any(ctx.store.peek(candidate) is result for candidate in candidates)

    def _evaluate_sequence(self, path: NodePath, node: list[Any]) -> list[Any]:
        self.context.store.register(path, node)
        for index in range(len(node)):
            node[index] = self.evaluate(path.join(index), node[index])
        return node

    def _evaluate_mapping(self, path: NodePath, node: dict[Any, Any]) -> dict[Any, Any]:
        self.context.store.register(path, node)

        # Snapshot: nested keys are removed while iterating
        for key in sorted(node, key=str):
            if self._is_nested_key(key):
                target = self._nested_key_target(path, key)
                if not self.context.store.write(target, node[key], self.evaluate):
                    logger.debug(f"Nested key {key!r} at {path} has no target, dropped")
                del node[key]
            else:
                node[key] = self.evaluate(path.join(key), node[key])
        return node

    def _is_nested_key(self, key: Any) -> bool:
        if not isinstance(key, str):
            return False
        tag = self.context.config.nested_key_tag
        if not key.endswith(tag):
            return False
        return self.context.config.key_separator in key[: len(key) - len(tag)]

    def _nested_key_target(self, path: NodePath, key: str) -> NodePath:
        config = self.context.config
        body = key[: len(key) - len(config.nested_key_tag)]
        segments = parse_path(body, config.key_separator)
        if is_absolute(body, config.key_separator):
            return NodePath.root().extend(segments)
        return path.extend(segments)
