"""Extract operation descriptors from the ``paths`` of an API description.

Each (path, method) pair becomes one :class:`OperationDescriptor`:
- path-level parameters are prepended to the operation's own parameters
  (an operation parameter with the same name and location replaces them)
- parameter, request body and response ``$ref`` objects are resolved
- cookie parameters are skipped with a diagnostic
- a missing tag falls back to the configured ungrouped tag
- a missing operationId is derived from the method and path
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Any

from .config import GeneratorOptions
from .diagnostics import Diagnostics
from .loader import get_paths, resolve_ref
from .schema_parser import SchemaNode, parse_schema

HTTP_METHODS: tuple[str, ...] = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

PARAMETER_LOCATIONS = frozenset({"path", "query", "header"})

_TAG = re.compile(r"<[^>]+>")


def plain_text(text: str | None) -> str:
    """Flatten an HTML description into one line of docstring text.

    Tags are dropped before entities are decoded, so an escaped ``&lt;b&gt;``
    survives as literal ``<b>``.
    """
    return " ".join(html.unescape(_TAG.sub("", text or "")).split())


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    location: str
    required: bool
    schema: SchemaNode
    description: str = ""


@dataclass(frozen=True)
class PayloadDescriptor:
    schema: SchemaNode | None = None


@dataclass(frozen=True)
class RequestBodyDescriptor:
    content: dict[str, PayloadDescriptor]
    required: bool = False


@dataclass(frozen=True)
class ResponseDescriptor:
    status: str
    content: dict[str, PayloadDescriptor]
    description: str = ""

    @property
    def is_default(self) -> bool:
        return self.status == "default"

    @property
    def is_success(self) -> bool:
        return self.status.startswith("2")

    def payload(self, media_type: str) -> PayloadDescriptor | None:
        """Payload for *media_type*, falling back to the ``*/*`` wildcard."""
        return self.content.get(media_type) or self.content.get("*/*")


@dataclass
class OperationDescriptor:
    path: str
    http_method: str
    tag: str
    operation_id: str
    parameters: list[ParameterDescriptor] = field(default_factory=list)
    request_body: RequestBodyDescriptor | None = None
    responses: dict[str, ResponseDescriptor] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    summary: str = ""
    description: str = ""
    deprecated: bool = False

    @property
    def location(self) -> str:
        return f"{self.http_method.upper()} {self.path}"


def derive_operation_id(method: str, path: str) -> str:
    """Build an operation id from the method and path (``get /pets/{petId}`` -> ``get pets petId``)."""
    segments = [s.strip("{}") for s in path.split("/") if s]
    return " ".join([method.lower(), *segments])


def _deref(spec: dict[str, Any], obj: Any) -> dict[str, Any]:
    """Follow ``$ref`` objects (parameters, bodies, responses) to their target."""
    seen: set[str] = set()
    while isinstance(obj, dict) and "$ref" in obj:
        ref = obj["$ref"]
        if ref in seen:
            return {}
        seen.add(ref)
        try:
            obj = resolve_ref(spec, ref)
        except (KeyError, TypeError):
            return {}
    return obj if isinstance(obj, dict) else {}


def _parse_content(content: Any) -> dict[str, PayloadDescriptor]:
    if not isinstance(content, dict):
        return {}
    payloads: dict[str, PayloadDescriptor] = {}
    for media_type, media in content.items():
        schema = media.get("schema") if isinstance(media, dict) else None
        payloads[media_type] = PayloadDescriptor(parse_schema(schema) if schema else None)
    return payloads


def parse_parameters(
    spec: dict[str, Any],
    raw_parameters: list[Any],
    location: str,
    diagnostics: Diagnostics,
) -> list[ParameterDescriptor]:
    """Parse a list of parameter objects, skipping unsupported locations."""
    params: list[ParameterDescriptor] = []
    for raw in raw_parameters or []:
        param = _deref(spec, raw)
        name = param.get("name")
        if not name:
            diagnostics.warning(location, "parameter without a name skipped")
            continue

        param_in = param.get("in", "query")
        if param_in not in PARAMETER_LOCATIONS:
            diagnostics.warning(location, f"{param_in} parameter {name!r} is not supported; skipped")
            continue

        description = param.get("description", "")
        if description:
            description = plain_text(description)

        params.append(ParameterDescriptor(
            name=name,
            location=param_in,
            # path parameters are always required
            required=bool(param.get("required", False)) or param_in == "path",
            schema=parse_schema(param.get("schema")),
            description=description,
        ))
    return params


def _merge_parameters(
    inherited: list[ParameterDescriptor],
    own: list[ParameterDescriptor],
) -> list[ParameterDescriptor]:
    overridden = {(p.name, p.location) for p in own}
    return [p for p in inherited if (p.name, p.location) not in overridden] + own


def parse_operation(
    spec: dict[str, Any],
    path: str,
    method: str,
    operation: dict[str, Any],
    inherited: list[ParameterDescriptor],
    options: GeneratorOptions,
    diagnostics: Diagnostics,
) -> OperationDescriptor:
    """Parse a single operation object."""
    location = f"{method.upper()} {path}"

    tags = [t for t in operation.get("tags") or [] if isinstance(t, str) and t]
    if tags:
        tag = tags[0]
    else:
        tag = options.ungrouped_tag
        diagnostics.warning(location, f"operation has no tag; grouped under {tag!r}")

    operation_id = operation.get("operationId")
    if not operation_id:
        operation_id = derive_operation_id(method, path)
        diagnostics.warning(location, f"operation has no operationId; using {operation_id!r}")

    own = parse_parameters(spec, operation.get("parameters") or [], location, diagnostics)

    request_body = None
    if "requestBody" in operation:
        raw_body = _deref(spec, operation["requestBody"])
        request_body = RequestBodyDescriptor(
            content=_parse_content(raw_body.get("content")),
            required=bool(raw_body.get("required", False)),
        )

    responses: dict[str, ResponseDescriptor] = {}
    for status, raw_response in (operation.get("responses") or {}).items():
        response = _deref(spec, raw_response)
        status = str(status).upper() if str(status).lower() != "default" else "default"
        responses[status] = ResponseDescriptor(
            status=status,
            content=_parse_content(response.get("content")),
            description=plain_text(response.get("description", "")),
        )

    return OperationDescriptor(
        path=path,
        http_method=method.lower(),
        tag=tag,
        operation_id=operation_id,
        parameters=_merge_parameters(inherited, own),
        request_body=request_body,
        responses=responses,
        tags=tags,
        summary=plain_text(operation.get("summary", "")),
        description=plain_text(operation.get("description", "")),
        deprecated=bool(operation.get("deprecated", False)),
    )


def parse_operations(
    spec: dict[str, Any],
    options: GeneratorOptions | None = None,
    diagnostics: Diagnostics | None = None,
) -> list[OperationDescriptor]:
    """Parse every operation under ``paths`` in declaration order."""
    options = options or GeneratorOptions()
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    operations: list[OperationDescriptor] = []

    for path, raw_item in get_paths(spec).items():
        path_item = _deref(spec, raw_item)
        inherited = parse_parameters(spec, path_item.get("parameters") or [], path, diagnostics)
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            operations.append(
                parse_operation(spec, path, method, operation, inherited, options, diagnostics)
            )

    return operations
