"""
Render configuration.

Options this package understands are declared as fields. Any other option is
kept as an extra and handed verbatim to the Jinja2 environment, so everything
Jinja2 supports can be set:

    RenderConfig(
        substitution_tag="]]",       # datatemplate option
        trim_blocks=True,            # Jinja2 option
    )

Environment Variables:
    DATATEMPLATE_MAX_DEPTH: Default evaluation depth limit (default: 100)
"""

import logging
import os
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


def get_max_depth() -> int:
    """Get the default evaluation depth limit from the environment.

    Reads DATATEMPLATE_MAX_DEPTH. Valid range: 1-10000 (clamped automatically).
    Invalid values fall back to the default.
    """
    try:
        depth = int(os.getenv("DATATEMPLATE_MAX_DEPTH", str(DEFAULT_MAX_DEPTH)))
        return max(1, min(10000, depth))
    except ValueError:
        logger.warning("Invalid DATATEMPLATE_MAX_DEPTH, using %d", DEFAULT_MAX_DEPTH)
        return DEFAULT_MAX_DEPTH


class RenderConfig(BaseModel):
    """Options for a render call.

    Attributes:
        substitution_tag: Prefix marking a substitution value ("=a.b")
        nested_key_tag: Suffix marking a nested key ("a.b="). Empty string makes
            every key containing the separator a nested key.
        key_separator: Separator between path segments
        max_depth: Maximum evaluation nesting before RecursionDepthExceededError
        safe_mode: Render templates in a sandboxed Jinja2 environment
        globals: Extra Jinja2 global functions/values
        filters: Extra Jinja2 filters
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    substitution_tag: str = Field(default="=", min_length=1)
    nested_key_tag: str = "="
    key_separator: str = Field(default=".", min_length=1)
    max_depth: int = Field(default_factory=get_max_depth, ge=1)
    safe_mode: bool = True
    globals: dict[str, Any] = Field(default_factory=dict)
    filters: dict[str, Callable[..., Any]] = Field(default_factory=dict)

    @field_validator("substitution_tag", "key_separator")
    @classmethod
    def _no_surrounding_whitespace(cls, v: str) -> str:
        if v != v.strip():
            raise ValueError("must not start or end with whitespace")
        return v

    def engine_options(self) -> dict[str, Any]:
        """Options not handled here, passed through to jinja2.Environment."""
        return dict(self.model_extra or {})
