"""Resolve schema nodes into structured type expressions.

Resolution is a pure function of the node: named references resolve through
the :class:`~clientgen.naming.TokenRegistry` and are never expanded, so two
differently named but identical schemas stay two types. Turning the resulting
:data:`TypeExpr` into Python text is the job of
:mod:`clientgen.declarations`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from .exceptions import RecursiveSchemaError
from .naming import TokenRegistry
from .schema_parser import (
    Array,
    Binary,
    Composite,
    CompositeOp,
    Object,
    Primitive,
    Reference,
    SchemaNode,
)

_SCALARS: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
}


@dataclass(frozen=True)
class OpenType:
    pass


@dataclass(frozen=True)
class ScalarType:
    name: str


@dataclass(frozen=True)
class BinaryType:
    pass


@dataclass(frozen=True)
class LiteralUnion:
    values: tuple[Any, ...]


@dataclass(frozen=True)
class NamedType:
    identifier: str
    raw_name: str


@dataclass(frozen=True)
class SequenceType:
    element: TypeExpr


@dataclass(frozen=True)
class UnionType:
    members: tuple[TypeExpr, ...]


@dataclass(frozen=True)
class IntersectionType:
    members: tuple[TypeExpr, ...]


@dataclass(frozen=True)
class RecordField:
    name: str
    type: TypeExpr
    required: bool


@dataclass(frozen=True)
class RecordType:
    fields: tuple[RecordField, ...]
    extra: TypeExpr | None = None


TypeExpr = Union[
    OpenType,
    ScalarType,
    BinaryType,
    LiteralUnion,
    NamedType,
    SequenceType,
    UnionType,
    IntersectionType,
    RecordType,
]


def collapse(expr: TypeExpr) -> TypeExpr:
    """Reduce an intersection with a single non-open member to that member."""
    while isinstance(expr, IntersectionType):
        members = [m for m in expr.members if not isinstance(m, OpenType)]
        if not members:
            return OpenType()
        if len(members) > 1:
            return expr
        expr = members[0]
    return expr


class TypeResolver:
    """Map :data:`SchemaNode` values to :data:`TypeExpr` values.

    Args:
        registry: Module-level token registry shared with the renderer.
        schemas: Top-level named schemas, used only when a reference chain
            has to be followed (see :meth:`record_base`).
    """

    def __init__(self, registry: TokenRegistry, schemas: Mapping[str, SchemaNode] | None = None) -> None:
        self.registry = registry
        self.schemas: Mapping[str, SchemaNode] = schemas or {}

    def resolve(self, node: SchemaNode) -> TypeExpr:
        """Resolve *node*; unsupported shapes degrade to :class:`OpenType`."""
        if isinstance(node, Composite):
            members = tuple(self.resolve(member) for member in node.members)
            if node.op is CompositeOp.AND:
                return IntersectionType(members)
            return UnionType(members)

        if isinstance(node, Reference):
            return NamedType(self.registry.resolve(node.name), node.name)

        if isinstance(node, Object):
            if not node.properties and node.additional_properties is None:
                return OpenType()
            fields = tuple(
                RecordField(name, self.resolve(prop.type), prop.required)
                for name, prop in node.properties
            )
            extra = None
            if node.additional_properties is not None:
                extra = self.resolve(node.additional_properties)
            return RecordType(fields, extra)

        if isinstance(node, Primitive):
            if node.enum_values:
                return LiteralUnion(tuple(node.enum_values))
            return ScalarType(_SCALARS.get(node.kind, "str"))

        if isinstance(node, Binary):
            return BinaryType()

        if isinstance(node, Array):
            return SequenceType(self.resolve(node.element))

        return OpenType()

    def record_base(self, raw_name: str, _chain: tuple[str, ...] = ()) -> str | None:
        """Return the identifier of the TypedDict class *raw_name* renders to.

        Follows alias chains (``A: $ref B``) down to an object or a
        record-like ``allOf``. Returns ``None`` when the schema is not a
        record or is unknown.

        Raises:
            RecursiveSchemaError: If the chain comes back to a name already
                being followed.
        """
        if raw_name in _chain:
            raise RecursiveSchemaError([*_chain, raw_name])

        node = self.schemas.get(raw_name)
        if node is None:
            return None

        chain = (*_chain, raw_name)
        expr = collapse(self.resolve(node))
        if isinstance(expr, NamedType):
            return self.record_base(expr.raw_name, chain)
        if self.is_record(expr, chain):
            return self.registry.resolve(raw_name)
        return None

    def is_record(self, expr: TypeExpr, _chain: tuple[str, ...] = ()) -> bool:
        """True when *expr* renders to a TypedDict class."""
        if isinstance(expr, RecordType):
            return bool(expr.fields)
        if isinstance(expr, NamedType):
            return self.record_base(expr.raw_name, _chain) is not None
        if isinstance(expr, IntersectionType):
            members = [m for m in expr.members if not isinstance(m, OpenType)]
            return bool(members) and all(self.is_record(m, _chain) for m in members)
        return False
