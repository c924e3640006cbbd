"""Build Jinja2 template context from a parsed API description.

Runs one generation pass: declares the named schemas, groups operations into
API classes, emits one method per media-type variant and assembles the full
context dict for client.py.j2.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .classifier import group_operations_by_tag
from .config import GeneratorOptions
from .declarations import TypeRenderer
from .diagnostics import Diagnostics
from .emitter import MethodVariant, OperationEmitter
from .exceptions import RecursiveSchemaError
from .loader import get_schemas
from .naming import TokenRegistry, method_registry
from .operations import parse_operations
from .resolver import TypeResolver
from .schema_parser import parse_schema

logger = logging.getLogger(__name__)

RUNTIME_PATH = Path(__file__).parent / "runtime.py"

# Names the runtime exports into every generated module
RUNTIME_EXPORTS: tuple[str, ...] = ("ApiRequest", "Client", "HttpxTransport", "Middleware", "RequestError")

_FUTURE_IMPORT = "from __future__ import annotations\n"


def runtime_source() -> str:
    """Source of the runtime module without its docstring and future import."""
    source = RUNTIME_PATH.read_text(encoding="utf-8")
    _, _, body = source.partition(_FUTURE_IMPORT)
    return body.strip("\n") + "\n"


def _docstring_lines(variant: MethodVariant) -> list[str]:
    return [line.replace("\\", "\\\\").replace('"""', '\\"\\"\\"') for line in variant.doc]


def build_context(spec: dict[str, Any], options: GeneratorOptions | None = None) -> dict[str, Any]:
    """Build the full template context from the API description."""
    options = options or GeneratorOptions()
    diagnostics = Diagnostics()
    registry = TokenRegistry()

    schemas = {name: parse_schema(raw) for name, raw in get_schemas(spec).items()}
    # Claim schema names before anything inline can take them
    for name in schemas:
        registry.resolve(name)

    resolver = TypeResolver(registry, schemas)
    renderer = TypeRenderer(resolver, diagnostics)
    for name, node in schemas.items():
        renderer.declare_schema(name, node)

    operations = parse_operations(spec, options, diagnostics)
    emitter = OperationEmitter(renderer, options, diagnostics)

    apis: list[dict[str, Any]] = []
    method_count = 0
    for class_name, group in group_operations_by_tag(operations, registry).items():
        methods = method_registry()
        variants: list[MethodVariant] = []
        for operation in group:
            try:
                emitted = emitter.emit(operation, methods)
            except RecursiveSchemaError as exc:
                diagnostics.error(operation.location, f"operation skipped: {exc}")
                continue
            if not emitted:
                diagnostics.error(operation.location, "operation produced no method")
            variants.extend(emitted)

        for variant in variants:
            variant.doc = _docstring_lines(variant)
        apis.append({"name": class_name, "methods": variants})
        method_count += len(variants)

    declarations = renderer.ordered()
    info = spec.get("info") or {}
    exports = sorted(
        [d.name for d in declarations] + [api["name"] for api in apis] + list(RUNTIME_EXPORTS)
    )

    logger.info(
        "%d declarations, %d API classes, %d methods, %d diagnostics",
        len(declarations), len(apis), method_count, len(diagnostics),
    )

    return {
        "title": info.get("title", "API"),
        "version": info.get("version", "unknown"),
        "declarations": declarations,
        "apis": apis,
        "method_count": method_count,
        "diagnostics": list(diagnostics),
        "exports": exports,
        "runtime_exports": RUNTIME_EXPORTS,
        "inline_runtime": options.inline_runtime,
        "runtime_source": runtime_source() if options.inline_runtime else "",
    }
