"""
YAML/JSON data loading.

Loading is kept out of the render core: these helpers read a file, hand the
parsed tree to ``render`` and report every problem as a failed LoadResult.

Features:
- Load data from .yaml/.yml/.json files or YAML strings
- Render a file in one call with render_file()
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .config import RenderConfig
from .exceptions import DataTemplateError
from .load_result import LoadResult
from .renderer import render

logger = logging.getLogger(__name__)


def load_data_from_file(file_path: str | Path) -> LoadResult[Any]:
    """
    Load a data tree from a YAML or JSON file.

    ``.json`` files are parsed with json; everything else is parsed as YAML.

    Args:
        file_path: Path to the data file

    Returns:
        LoadResult.success(data) if parsed
        LoadResult.failure(error_message) otherwise
    """
    path = Path(file_path)

    if not path.exists():
        return LoadResult.failure(f"Data file not found: {file_path}")

    if not path.is_file():
        return LoadResult.failure(f"Path is not a file: {file_path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        return LoadResult.failure(f"Failed to read file '{file_path}': {e}")

    if path.suffix.lower() == ".json":
        try:
            return LoadResult.success(json.loads(content), metadata={"source": str(path)})
        except json.JSONDecodeError as e:
            return LoadResult.failure(f"Invalid JSON syntax in {file_path}: {e}")

    return load_data_from_string(content, source=str(path))


def load_data_from_string(content: str, source: str = "<string>") -> LoadResult[Any]:
    """
    Load a data tree from a YAML (or JSON) string.

    Args:
        content: YAML content
        source: Source identifier for error messages (default: "<string>")
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        return LoadResult.failure(f"Invalid YAML syntax in {source}: {e}")

    return LoadResult.success(data, metadata={"source": source})


def render_file(
    file_path: str | Path, config: RenderConfig | None = None, **options: Any
) -> LoadResult[Any]:
    """
    Load a data file and render it.

    Render errors are reported as failures, not raised.

    Example:
        result = render_file("settings.yaml", substitution_tag="=:")
        if result.is_success:
            settings = result.value
    """
    loaded = load_data_from_file(file_path)
    if loaded.is_failure:
        return loaded

    try:
        rendered = render(loaded.value, config, **options)
    except DataTemplateError as e:
        logger.debug(f"Render of {file_path} failed: {e}")
        return LoadResult.failure(f"Failed to render {file_path}: {e}")

    return LoadResult.success(rendered, metadata=loaded.metadata)
