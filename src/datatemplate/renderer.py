"""
Render entry points.

    from datatemplate import DataTemplate

    dt = DataTemplate()
    dt.render({
        "user": {"login": "john", "email": "{{ login }}@example.com", "name": "John"},
        "email": {"to": "=user.email", "subject": "Hello {{ user.name }}!"},
    })
    # {"user": {...}, "email": {"to": "john@example.com", "subject": "Hello John!"}}

The input is never modified: each render works on a deep copy.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from jinja2 import Environment

from .config import RenderConfig
from .evaluator import TreeEvaluator
from .template import build_environment

logger = logging.getLogger(__name__)


class DataTemplate:
    """
    Reusable renderer for data trees.

    Options not known to RenderConfig are passed to the Jinja2 environment:

        DataTemplate(substitution_tag="]]", trim_blocks=True)

    Args:
        config: Full configuration (takes precedence over keyword options)
        **options: RenderConfig fields and/or Jinja2 environment options
    """

    def __init__(self, config: RenderConfig | None = None, **options: Any):
        self.config = config if config is not None else RenderConfig(**options)
        self._environment: Environment | None = None

    @property
    def environment(self) -> Environment:
        """The Jinja2 environment used for template values (built lazily)."""
        if self._environment is None:
            self._environment = build_environment(self.config)
        return self._environment

    def render(self, data: Any) -> Any:
        """
        Render a data tree.

        Args:
            data: Nested dicts/lists/scalars

        Returns:
            A new tree with substitutions, templates and nested keys resolved

        Raises:
            DataTemplateError: Any fatal evaluation error (no partial result)
        """
        tree = copy.deepcopy(data)
        evaluator = TreeEvaluator(tree, self.config, self.environment)
        result = evaluator.run()
        logger.debug("Rendered data tree (%d nodes evaluated)", evaluator.context.store.evaluations)
        return result


def render(data: Any, config: RenderConfig | None = None, **options: Any) -> Any:
    """Render a data tree with a one-off DataTemplate."""
    return DataTemplate(config, **options).render(data)
