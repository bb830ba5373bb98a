"""Command-line entry point: render a YAML/JSON data file to stdout.

    datatemplate settings.yaml
    python -m datatemplate settings.json --format json --strict

Environment Variables:
    DATATEMPLATE_LOG_LEVEL: Logging level written to stderr (default: WARNING)
"""

import argparse
import json
import logging
import os
import sys

import yaml
from jinja2 import StrictUndefined
from pydantic import ValidationError

from .config import RenderConfig
from .loader import render_file

logger = logging.getLogger(__name__)


class _NoAliasDumper(yaml.SafeDumper):
    """Substituted nodes are shared objects; print them in full, not as aliases."""

    def ignore_aliases(self, data: object) -> bool:
        return True


def configure_logging() -> None:
    """Configure stderr logging from DATATEMPLATE_LOG_LEVEL."""
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    log_level_str = os.getenv("DATATEMPLATE_LOG_LEVEL", "WARNING").upper()

    if log_level_str not in valid_log_levels:
        print(
            f"Warning: Invalid DATATEMPLATE_LOG_LEVEL '{log_level_str}'. "
            f"Valid levels: {', '.join(sorted(valid_log_levels))}. "
            "Using WARNING.",
            file=sys.stderr,
        )
        log_level_str = "WARNING"

    logging.basicConfig(
        level=getattr(logging, log_level_str),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datatemplate",
        description="Render substitutions, templates and nested keys in a data file",
    )
    parser.add_argument("file", help="Path to a YAML or JSON data file")
    parser.add_argument("--substitution-tag", help="Prefix marking substitutions (default: =)")
    parser.add_argument("--nested-key-tag", help="Suffix marking nested keys (default: =)")
    parser.add_argument("--key-separator", help="Path separator (default: .)")
    parser.add_argument(
        "--strict", action="store_true", help="Fail on undefined template variables"
    )
    parser.add_argument(
        "--format", choices=["yaml", "json"], default="yaml", help="Output format"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)

    options: dict[str, object] = {}
    for name in ("substitution_tag", "nested_key_tag", "key_separator"):
        value = getattr(args, name)
        if value is not None:
            options[name] = value
    if args.strict:
        options["undefined"] = StrictUndefined

    try:
        config = RenderConfig(**options)
    except ValidationError as e:
        print(f"Error: invalid options: {e}", file=sys.stderr)
        return 1

    result = render_file(args.file, config)
    if result.is_failure:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(result.value, indent=2, default=str))
    else:
        print(yaml.dump(result.value, Dumper=_NoAliasDumper, sort_keys=False), end="")

    logger.info("Rendered %s", args.file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
