"""
Bridge between the evaluator and Jinja2.

Template strings are rendered by Jinja2. Free names in a template are looked
up in the data tree with the same scope rules as substitutions, through a
NodeLookup capability bound to the path being rendered:

    {
        user: { login: "john", email: "{{ login }}@example.com" },
        subject: "Hello {{ user.login }}!",
        other: "{{ node('.user.email') }}",
    }

Lookup order for a free name:
1. Variables set by the template itself
2. The data tree (scope search from the rendered path)
3. Jinja2 globals (``node``, ``range``, user-supplied globals)

The ``node(path)`` global accepts full path expressions, including absolute
ones and keys that are not valid Jinja2 identifiers.
"""

from __future__ import annotations

import logging
from typing import Any

from jinja2 import Environment, StrictUndefined, pass_context
from jinja2.runtime import Context
from jinja2.sandbox import SandboxedEnvironment

from .config import RenderConfig
from .exceptions import CycleDetectedError, DataTemplateError, TemplateRenderError
from .paths import NodePath
from .resolver import ScopeResolver
from .store import MISSING

logger = logging.getLogger(__name__)

# Template variable carrying the active NodeLookup
LOOKUP_VAR = "__datatemplate_lookup__"


class NodeLookup:
    """Read-only capability: resolve path expressions as seen from one node."""

    def __init__(self, resolver: ScopeResolver, context_path: NodePath):
        self._resolver = resolver
        self.context_path = context_path

    def lookup(self, expression: str) -> Any:
        """Resolve a relative or absolute path expression. Returns MISSING if absent."""
        return self._resolver.resolve(expression, self.context_path)


class TreeContext(Context):
    """
    Jinja2 context that resolves free names through the data tree.

    Jinja2 resolves every free name of a template before rendering it, even
    names only used in branches that never run. A name whose node is part
    of a reference cycle therefore resolves to an undefined value that
    raises the CycleDetectedError only when the template actually uses it.
    """

    def resolve_or_missing(self, key: str) -> Any:
        if key in self.vars:
            return self.vars[key]

        lookup = self.parent.get(LOOKUP_VAR)
        if lookup is not None and key != LOOKUP_VAR:
            try:
                value = lookup.lookup(key)
            except CycleDetectedError as e:
                cycle = e
                return StrictUndefined(name=key, exc=lambda message: cycle)
            if value is not MISSING:
                return value

        return super().resolve_or_missing(key)


@pass_context
def node(context: Context, path: str) -> Any:
    """Jinja2 global: ``node('a.b')`` / ``node('.a.b')``. None if absent."""
    lookup = context.parent.get(LOOKUP_VAR)
    if lookup is None:
        return None
    value = lookup.lookup(path)
    return None if value is MISSING else value


def build_environment(config: RenderConfig) -> Environment:
    """
    Create the Jinja2 environment for a configuration.

    Extra configuration options are passed to the environment constructor.
    ``globals`` and ``filters`` are merged in; a user-supplied ``node`` global
    replaces the built-in one.
    """
    options: dict[str, Any] = {"autoescape": False, "keep_trailing_newline": True}
    options.update(config.engine_options())

    env: Environment
    if config.safe_mode:
        env = SandboxedEnvironment(**options)
    else:
        env = Environment(**options)

    env.context_class = TreeContext
    env.globals.update(config.globals)
    env.globals.setdefault("node", node)
    env.filters.update(config.filters)
    return env


class TemplateAdapter:
    """
    Render template strings for the evaluator.

    Performs no caching: results are cached by the node store, keyed by
    the path being rendered.
    """

    def __init__(self, environment: Environment, resolver: ScopeResolver):
        self.environment = environment
        self.resolver = resolver

        markers = [
            environment.variable_start_string,
            environment.block_start_string,
            environment.comment_start_string,
            environment.line_statement_prefix,
            environment.line_comment_prefix,
        ]
        self._markers = [m for m in markers if m]

    def is_template(self, text: str) -> bool:
        """True if the string contains any Jinja2 start delimiter."""
        return any(marker in text for marker in self._markers)

    def render(self, text: str, context_path: NodePath) -> str:
        """
        Render a template string as seen from ``context_path``.

        Strings without template markers are returned unchanged.

        Raises:
            TemplateRenderError: Syntax errors, strict undefined, sandbox violations
        """
        if not self.is_template(text):
            return text

        capability = NodeLookup(self.resolver, context_path)
        try:
            template = self.environment.from_string(text)
            return template.render({LOOKUP_VAR: capability})
        except DataTemplateError:
            raise
        except Exception as e:
            raise TemplateRenderError(str(context_path), text, str(e)) from e
