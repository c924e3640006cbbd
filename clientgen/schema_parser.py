"""Parse raw OpenAPI schema objects into immutable schema nodes.

Handles:
- $ref (name-based, last path segment)
- allOf -> AND composite, oneOf/anyOf -> OR composite
- objects with properties, required lists and additionalProperties
- string enums, binary strings, integers, numbers, booleans
- arrays
- OpenAPI 3.1 type lists (["string", "null"])

Parsing never raises: anything without usable shape information becomes
:class:`Open`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class CompositeOp(Enum):
    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class Composite:
    op: CompositeOp
    members: tuple[SchemaNode, ...]


@dataclass(frozen=True)
class ObjectProperty:
    type: SchemaNode
    required: bool


@dataclass(frozen=True)
class Object:
    properties: tuple[tuple[str, ObjectProperty], ...] = ()
    additional_properties: SchemaNode | None = None


@dataclass(frozen=True)
class Primitive:
    kind: str
    enum_values: tuple[Any, ...] | None = None


@dataclass(frozen=True)
class Binary:
    pass


@dataclass(frozen=True)
class Array:
    element: SchemaNode


@dataclass(frozen=True)
class Open:
    pass


SchemaNode = Union[Reference, Composite, Object, Primitive, Binary, Array, Open]

_PRIMITIVE_KINDS = frozenset({"string", "integer", "number", "boolean"})


def ref_name(ref: str) -> str:
    """Return the schema name a $ref points at (``#/components/schemas/Pet`` -> ``Pet``)."""
    return ref.rstrip("/").split("/")[-1]


def _schema_type(schema: dict[str, Any]) -> str | None:
    """Read ``type``, picking the first non-null entry of a 3.1 type list."""
    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        for entry in schema_type:
            if entry != "null":
                return entry
        return None
    return schema_type


def _parse_object(schema: dict[str, Any]) -> Object:
    required = set(schema.get("required") or [])
    properties = schema.get("properties") or {}
    parsed = tuple(
        (name, ObjectProperty(parse_schema(prop), name in required))
        for name, prop in properties.items()
    )

    additional = schema.get("additionalProperties")
    if additional is True:
        additional_node: SchemaNode | None = Open()
    elif isinstance(additional, dict):
        additional_node = parse_schema(additional)
    else:
        additional_node = None

    return Object(parsed, additional_node)


def parse_schema(schema: Any) -> SchemaNode:
    """Build a :data:`SchemaNode` from a raw schema dict."""
    if not isinstance(schema, dict) or not schema:
        return Open()

    if "$ref" in schema:
        return Reference(ref_name(schema["$ref"]))

    if isinstance(schema.get("allOf"), list):
        return Composite(CompositeOp.AND, tuple(parse_schema(s) for s in schema["allOf"]))

    for key in ("oneOf", "anyOf"):
        if isinstance(schema.get(key), list):
            return Composite(CompositeOp.OR, tuple(parse_schema(s) for s in schema[key]))

    schema_type = _schema_type(schema)

    if schema_type == "object" or "properties" in schema or "additionalProperties" in schema:
        return _parse_object(schema)

    if schema_type == "array":
        return Array(parse_schema(schema.get("items")))

    if schema_type == "string" and schema.get("format") == "binary":
        return Binary()

    if "enum" in schema and isinstance(schema["enum"], list):
        values = tuple(v for v in schema["enum"] if v is not None)
        if schema_type not in _PRIMITIVE_KINDS:
            schema_type = "string" if all(isinstance(v, str) for v in values) else None
        if schema_type and values:
            return Primitive(schema_type, values)

    if schema_type in _PRIMITIVE_KINDS:
        return Primitive(schema_type)

    return Open()
