"""Templatize nested data.

Values in a data tree can refer to other values in the same tree:

- Substitution: ``"=a.b"`` is replaced by the node at ``a.b`` (any type)
- Templating: ``"Hello {{ user.name }}!"`` is rendered by Jinja2
- Nested keys: ``{"a.b=": 2}`` is merged into ``a.b``

References are resolved with scope rules like lexical variables: same
scope first, then each enclosing scope, then the root. A leading separator
(``"=.c"``) looks at the root only.

Public API:
    - render / DataTemplate: Render a data tree
    - RenderConfig: Options (tags, separator, depth limit, Jinja2 options)
    - load_data_from_file / render_file: YAML/JSON file helpers
    - DataTemplateError and subclasses: Fatal render errors
"""

from .config import RenderConfig
from .exceptions import (
    CycleDetectedError,
    DataTemplateError,
    InvalidNodeKindError,
    MalformedPathError,
    RecursionDepthExceededError,
    TemplateRenderError,
    TypeMismatchError,
)
from .load_result import LoadResult, LoadStatus
from .loader import load_data_from_file, load_data_from_string, render_file
from .paths import NodePath, is_absolute, parse_path
from .renderer import DataTemplate, render
from .store import MISSING, NodeStore

__all__ = [
    "render",
    "DataTemplate",
    "RenderConfig",
    "NodePath",
    "parse_path",
    "is_absolute",
    "NodeStore",
    "MISSING",
    "LoadResult",
    "LoadStatus",
    "load_data_from_file",
    "load_data_from_string",
    "render_file",
    "DataTemplateError",
    "CycleDetectedError",
    "InvalidNodeKindError",
    "MalformedPathError",
    "RecursionDepthExceededError",
    "TemplateRenderError",
    "TypeMismatchError",
]
