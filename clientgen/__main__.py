"""Entry point: python -m clientgen SPEC [-o OUTPUT]

Reads an OpenAPI description (JSON or YAML, ``-`` for stdin) and writes a
typed async Python client module.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from .codegen import generate
from .config import GeneratorOptions
from .context_builder import build_context
from .exceptions import ClientGenError, SpecLoadError
from .loader import load_spec

EXIT_SUCCESS = 0
EXIT_LOAD_ERROR = 1
EXIT_GENERATION_ERROR = 2


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="clientgen",
        description="Generate a typed async Python client from an OpenAPI description",
    )
    parser.add_argument("spec", help="OpenAPI description file (JSON or YAML), or - for stdin")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("client.py"),
        help="Module to write (default: %(default)s)",
    )
    parser.add_argument(
        "--inline-runtime",
        action="store_true",
        default=None,
        help="Paste the runtime into the generated module instead of importing clientgen.runtime",
    )
    parser.add_argument(
        "--default-content-type",
        help="Media type for operations that declare none",
    )
    parser.add_argument(
        "--ungrouped-tag",
        help="Tag for operations without one",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser.parse_args(args)


def options_from_args(parsed: argparse.Namespace) -> GeneratorOptions:
    """Environment defaults with command line flags on top."""
    options = GeneratorOptions.from_env()
    overrides = {
        "default_content_type": parsed.default_content_type,
        "ungrouped_tag": parsed.ungrouped_tag,
        "inline_runtime": parsed.inline_runtime,
    }
    return dataclasses.replace(options, **{k: v for k, v in overrides.items() if v is not None})


def main(args: list[str] | None = None) -> int:
    parsed = parse_args(args)
    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        spec = load_spec(parsed.spec)
    except SpecLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    try:
        context = build_context(spec, options_from_args(parsed))
        generate(context, parsed.output)
    except (ClientGenError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_GENERATION_ERROR

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
