"""Render type expressions as Python annotations and model declarations.

Python has no inline record or intersection types, so the renderer hoists
them: a record with fields becomes a ``TypedDict`` class, and an ``allOf``
whose members are all records becomes a ``TypedDict`` inheriting from the
referenced classes with the inline fields merged in. Everything else renders
to annotation text:

    OpenType              -> Any
    ScalarType            -> str / int / float / bool
    BinaryType            -> bytes
    LiteralUnion          -> Literal['A', 'B']
    SequenceType          -> list[T]
    UnionType             -> A | B
    RecordType (no field) -> dict[str, V]

Top-level schemas that do not hoist become quoted ``TypeAlias`` declarations,
so only class bases constrain declaration order.
"""

from __future__ import annotations

import keyword
from dataclasses import dataclass, field
from typing import Union

from .diagnostics import Diagnostics
from .exceptions import RecursiveSchemaError
from .resolver import (
    BinaryType,
    IntersectionType,
    LiteralUnion,
    NamedType,
    OpenType,
    RecordField,
    RecordType,
    ScalarType,
    SequenceType,
    TypeExpr,
    TypeResolver,
    UnionType,
    collapse,
)
from .schema_parser import SchemaNode


@dataclass
class TypedDictDeclaration:
    name: str
    fields: list[tuple[str, str, bool]]
    bases: list[str] = field(default_factory=list)
    extra: str | None = None
    kind: str = "typeddict"

    @property
    def functional(self) -> bool:
        """Keys a class body cannot hold need ``TypedDict("Name", {...})``.

        Non-identifiers and keywords need it, as do ``__private`` names, which
        a class body would mangle to ``_Name__private``.
        """
        return any(
            not key.isidentifier() or keyword.iskeyword(key) or key.startswith("__")
            for key, _, _ in self.fields
        )


@dataclass
class AliasDeclaration:
    name: str
    annotation: str
    kind: str = "alias"


Declaration = Union[TypedDictDeclaration, AliasDeclaration]


class TypeRenderer:
    """Turn :data:`TypeExpr` values into annotation text, collecting declarations."""

    def __init__(self, resolver: TypeResolver, diagnostics: Diagnostics | None = None) -> None:
        self.resolver = resolver
        self.registry = resolver.registry
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._declarations: dict[str, Declaration] = {}

    def render(self, expr: TypeExpr, raw_name: str) -> str:
        """Render *expr*; *raw_name* names any declaration that has to be hoisted."""
        expr = collapse(expr)

        if isinstance(expr, OpenType):
            return "Any"
        if isinstance(expr, ScalarType):
            return expr.name
        if isinstance(expr, BinaryType):
            return "bytes"
        if isinstance(expr, LiteralUnion):
            return "Literal[" + ", ".join(repr(v) for v in expr.values) + "]"
        if isinstance(expr, NamedType):
            return expr.identifier
        if isinstance(expr, SequenceType):
            return f"list[{self.render(expr.element, f'{raw_name} item')}]"
        if isinstance(expr, UnionType):
            return self._render_union(expr, raw_name)
        if isinstance(expr, RecordType):
            if not expr.fields:
                return f"dict[str, {self.render(expr.extra or OpenType(), f'{raw_name} value')}]"
            return self._declare_record(raw_name, list(expr.fields), [], expr.extra)
        if isinstance(expr, IntersectionType):
            return self._render_intersection(expr, raw_name)
        return "Any"

    def declare_schema(self, raw_name: str, node: SchemaNode) -> Declaration:
        """Declare the top-level schema *raw_name* as a class or an alias."""
        name = self.registry.resolve(raw_name)
        try:
            self.resolver.record_base(raw_name)
            expr = collapse(self.resolver.resolve(node))
            if isinstance(expr, (RecordType, IntersectionType)) and self.resolver.is_record(expr):
                self.render(expr, raw_name)
                return self._declarations[name]
            declaration: Declaration = AliasDeclaration(name, self.render(expr, raw_name))
        except RecursiveSchemaError as exc:
            self.diagnostics.error(f"schema {raw_name}", str(exc))
            declaration = AliasDeclaration(name, "Any")

        self._declarations[name] = declaration
        return declaration

    def ordered(self) -> list[Declaration]:
        """All declarations, each base class placed before its subclasses."""
        result: list[Declaration] = []
        placed: set[str] = set()

        def place(declaration: Declaration) -> None:
            if declaration.name in placed:
                return
            placed.add(declaration.name)
            for base in getattr(declaration, "bases", ()):
                if base in self._declarations:
                    place(self._declarations[base])
            result.append(declaration)

        for declaration in list(self._declarations.values()):
            place(declaration)
        return result

    def __contains__(self, name: object) -> bool:
        return name in self._declarations

    def __getitem__(self, name: str) -> Declaration:
        return self._declarations[name]

    def _render_union(self, expr: UnionType, raw_name: str) -> str:
        rendered: list[str] = []
        for index, member in enumerate(expr.members, start=1):
            text = self.render(member, f"{raw_name} option {index}")
            if text == "Any":
                return "Any"
            if text not in rendered:
                rendered.append(text)
        return " | ".join(rendered) if rendered else "Any"

    def _render_intersection(self, expr: IntersectionType, raw_name: str) -> str:
        if not self.resolver.is_record(expr):
            self.diagnostics.warning(
                raw_name, "allOf mixes records with non-record schemas; typed as Any"
            )
            return "Any"

        bases: list[str] = []
        fields: list[RecordField] = []
        extra: TypeExpr | None = None
        pending = list(expr.members)
        while pending:
            member = collapse(pending.pop(0))
            if isinstance(member, NamedType):
                base = self.resolver.record_base(member.raw_name)
                if base and base not in bases:
                    bases.append(base)
            elif isinstance(member, RecordType):
                fields.extend(member.fields)
                extra = member.extra or extra
            elif isinstance(member, IntersectionType):
                pending[:0] = member.members
        return self._declare_record(raw_name, fields, bases, extra)

    def _declare_record(
        self,
        raw_name: str,
        fields: list[RecordField],
        bases: list[str],
        extra: TypeExpr | None,
    ) -> str:
        name = self.registry.resolve(raw_name)
        if name in self._declarations:
            return name

        rendered: dict[str, tuple[str, str, bool]] = {}
        for record_field in fields:
            annotation = self.render(record_field.type, f"{raw_name} {record_field.name}")
            rendered[record_field.name] = (record_field.name, annotation, record_field.required)

        declaration = TypedDictDeclaration(name, list(rendered.values()), list(bases))
        if extra is not None:
            declaration.extra = self.render(extra, f"{raw_name} value")
        if declaration.functional and declaration.bases:
            self.diagnostics.warning(
                raw_name, "field names need the functional TypedDict form; base classes dropped"
            )
            declaration.bases = []

        self._declarations[name] = declaration
        return name
