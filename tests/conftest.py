"""Shared test configuration for datatemplate tests.

Provides:
- A default DataTemplate renderer
- A factory for TreeEvaluator instances (store/resolver unit tests)
- A call counter usable as a Jinja2 global
- A helper writing data files into tmp_path
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from datatemplate import DataTemplate, RenderConfig
from datatemplate.evaluator import TreeEvaluator
from datatemplate.template import build_environment


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep DATATEMPLATE_* variables from the host out of the tests."""
    monkeypatch.delenv("DATATEMPLATE_MAX_DEPTH", raising=False)
    monkeypatch.delenv("DATATEMPLATE_LOG_LEVEL", raising=False)
    yield


@pytest.fixture
def renderer() -> DataTemplate:
    return DataTemplate()


@pytest.fixture
def make_evaluator() -> Callable[..., TreeEvaluator]:
    """Build an evaluator over a tree without running it.

    Usage:
        evaluator = make_evaluator({"a": 1}, key_separator="/")
    """

    def factory(tree: Any, **options: Any) -> TreeEvaluator:
        config = RenderConfig(**options)
        return TreeEvaluator(tree, config, build_environment(config))

    return factory


class CallCounter:
    """Callable returning how many times it has been called."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        return self.calls


@pytest.fixture
def counter() -> CallCounter:
    return CallCounter()


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write ``content`` to ``tmp_path / name`` and return the path."""

    def writer(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return writer
