"""Errors raised while rendering a data tree.

Every fatal error aborts the whole render: no partial tree is returned.
A reference that cannot be found is NOT an error. It resolves to ``None``
(substitution) or to a Jinja2 undefined value (templates).
"""

from __future__ import annotations

from typing import Any


class DataTemplateError(Exception):
    """Base class for all render errors."""

    pass


class MalformedPathError(DataTemplateError):
    """Raised for an empty path string, an empty segment, or the parent of root."""

    def __init__(self, text: str, reason: str = "malformed path"):
        self.text = text
        self.reason = reason
        super().__init__(f"{reason}: {text!r}")


class InvalidNodeKindError(DataTemplateError):
    """
    A node is neither a mapping, a sequence, nor a scalar.

    Attributes:
        path: Dotted path of the offending node
        node: The node itself
    """

    def __init__(self, path: str, node: Any):
        self.path = path
        self.node = node
        super().__init__(
            f"The node at {path} is neither a mapping, a sequence, or a scalar "
            f"(got {type(node).__name__})"
        )


class TypeMismatchError(DataTemplateError):
    """A path walks into a scalar where a mapping or sequence was expected."""

    def __init__(self, path: str, segment: str):
        self.path = path
        self.segment = segment
        super().__init__(
            f"Cannot look up {segment!r}: the node at {path} is neither a mapping or a sequence"
        )


class CycleDetectedError(DataTemplateError):
    """
    A node depends on itself through substitutions or template lookups.

    Attributes:
        path: Path that was re-entered while still being evaluated
        chain: Evaluation stack at the point the cycle closed (outermost first)
    """

    def __init__(self, path: str, chain: list[str]):
        self.path = path
        self.chain = chain

        cycle = " → ".join(chain + [path])
        super().__init__(f"Reference cycle detected at {path}. Evaluation chain: {cycle}")

    def __repr__(self) -> str:
        return f"CycleDetectedError(path={self.path!r})"


class RecursionDepthExceededError(DataTemplateError):
    """
    Evaluation nested deeper than the configured limit.

    The limit is controlled by the ``max_depth`` option or the
    DATATEMPLATE_MAX_DEPTH environment variable (default: 100).
    """

    def __init__(self, path: str, depth: int, max_depth: int):
        self.path = path
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            f"Evaluation depth limit exceeded at {path} "
            f"(depth: {depth}, limit: {max_depth}). "
            f"To increase the limit, pass max_depth or set the "
            f"DATATEMPLATE_MAX_DEPTH environment variable to a higher value."
        )

    def __repr__(self) -> str:
        return (
            f"RecursionDepthExceededError(path={self.path!r}, "
            f"depth={self.depth}, limit={self.max_depth})"
        )


class TemplateRenderError(DataTemplateError):
    """The template engine failed on a string value. The engine error is chained."""

    def __init__(self, path: str, template: str, error: str):
        self.path = path
        self.template = template
        super().__init__(f"Failed to render template at {path}: {template!r}\nError: {error}")
