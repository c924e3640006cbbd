"""Render templates and write generated output.

Takes the context from context_builder and produces the client module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "client.py.j2"


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pyrepr"] = repr
    return env


def render(context: dict[str, Any]) -> str:
    """Render the client template to module source."""
    template = _environment().get_template(TEMPLATE_NAME)
    return template.render(**context)


def generate(context: dict[str, Any], output_path: str | Path) -> Path:
    """Render the client template and write it to *output_path*."""
    output = render(context)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(output, encoding="utf-8")

    print(f"Generated {output_path} ({context['method_count']} methods)")
    return output_path
