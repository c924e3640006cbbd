"""Tests for the resolver module."""

import pytest

from clientgen.exceptions import RecursiveSchemaError
from clientgen.naming import TokenRegistry
from clientgen.resolver import (
    BinaryType,
    IntersectionType,
    LiteralUnion,
    NamedType,
    OpenType,
    RecordField,
    RecordType,
    ScalarType,
    SequenceType,
    TypeResolver,
    UnionType,
    collapse,
)
from clientgen.schema_parser import parse_schema


def _resolver(schemas: dict | None = None) -> TypeResolver:
    parsed = {name: parse_schema(raw) for name, raw in (schemas or {}).items()}
    return TypeResolver(TokenRegistry(), parsed)


class TestResolve:
    """Test SchemaNode -> TypeExpr."""

    def test_scalars(self):
        resolver = _resolver()
        assert resolver.resolve(parse_schema({"type": "string"})) == ScalarType("str")
        assert resolver.resolve(parse_schema({"type": "integer"})) == ScalarType("int")
        assert resolver.resolve(parse_schema({"type": "number"})) == ScalarType("float")
        assert resolver.resolve(parse_schema({"type": "boolean"})) == ScalarType("bool")

    def test_binary(self):
        assert _resolver().resolve(parse_schema({"type": "string", "format": "binary"})) == BinaryType()

    def test_enum(self):
        expr = _resolver().resolve(parse_schema({"type": "string", "enum": ["A", "B"]}))
        assert expr == LiteralUnion(("A", "B"))

    def test_reference_goes_through_registry(self):
        resolver = _resolver()
        expr = resolver.resolve(parse_schema({"$ref": "#/components/schemas/pet-store"}))
        assert expr == NamedType("PetStore", "pet-store")
        assert "pet-store" in resolver.registry

    def test_reference_is_never_expanded(self):
        resolver = _resolver({"Pet": {"type": "string"}})
        assert isinstance(resolver.resolve(parse_schema({"$ref": "#/components/schemas/Pet"})), NamedType)

    def test_object_fields(self):
        expr = _resolver().resolve(parse_schema({
            "type": "object",
            "required": ["id"],
            "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
        }))
        assert expr == RecordType((
            RecordField("id", ScalarType("int"), True),
            RecordField("name", ScalarType("str"), False),
        ))

    def test_empty_object_is_open(self):
        assert _resolver().resolve(parse_schema({"type": "object"})) == OpenType()

    def test_index_only_object(self):
        expr = _resolver().resolve(parse_schema({"type": "object", "additionalProperties": {"type": "integer"}}))
        assert expr == RecordType((), ScalarType("int"))

    def test_array(self):
        expr = _resolver().resolve(parse_schema({"type": "array", "items": {"type": "string"}}))
        assert expr == SequenceType(ScalarType("str"))

    def test_all_of_keeps_member_order(self):
        expr = _resolver().resolve(parse_schema({
            "allOf": [{"$ref": "#/components/schemas/B"}, {"$ref": "#/components/schemas/A"}],
        }))
        assert isinstance(expr, IntersectionType)
        assert [m.raw_name for m in expr.members] == ["B", "A"]

    def test_one_of_is_a_plain_union(self):
        expr = _resolver().resolve(parse_schema({"oneOf": [{"type": "string"}, {"type": "integer"}]}))
        assert expr == UnionType((ScalarType("str"), ScalarType("int")))

    def test_resolution_is_pure(self):
        resolver = _resolver()
        node = parse_schema({"properties": {"a": {"$ref": "#/components/schemas/A"}}})
        assert resolver.resolve(node) == resolver.resolve(node)


class TestCollapse:
    def test_single_member(self):
        assert collapse(IntersectionType((ScalarType("str"),))) == ScalarType("str")

    def test_open_members_dropped(self):
        assert collapse(IntersectionType((OpenType(), ScalarType("int")))) == ScalarType("int")

    def test_only_open_members(self):
        assert collapse(IntersectionType((OpenType(),))) == OpenType()

    def test_several_members_kept(self):
        expr = IntersectionType((ScalarType("str"), ScalarType("int")))
        assert collapse(expr) is expr


class TestRecordBase:
    """Test alias chains and cycle detection."""

    def test_object_is_its_own_base(self):
        resolver = _resolver({"Pet": {"properties": {"id": {"type": "integer"}}}})
        assert resolver.record_base("Pet") == "Pet"

    def test_alias_chain(self):
        resolver = _resolver({
            "Pet": {"properties": {"id": {"type": "integer"}}},
            "Animal": {"$ref": "#/components/schemas/Pet"},
            "Creature": {"$ref": "#/components/schemas/Animal"},
        })
        assert resolver.record_base("Creature") == "Pet"

    def test_single_member_all_of_follows_reference(self):
        resolver = _resolver({
            "Pet": {"properties": {"id": {"type": "integer"}}},
            "Dog": {"allOf": [{"$ref": "#/components/schemas/Pet"}]},
        })
        assert resolver.record_base("Dog") == "Pet"

    def test_record_like_all_of(self):
        resolver = _resolver({
            "Pet": {"properties": {"id": {"type": "integer"}}},
            "Dog": {"allOf": [{"$ref": "#/components/schemas/Pet"}, {"properties": {"breed": {}}}]},
        })
        assert resolver.record_base("Dog") == "Dog"

    def test_non_record(self):
        resolver = _resolver({"Name": {"type": "string"}})
        assert resolver.record_base("Name") is None

    def test_unknown(self):
        assert _resolver().record_base("Missing") is None

    def test_reference_cycle(self):
        resolver = _resolver({
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"$ref": "#/components/schemas/A"},
        })
        with pytest.raises(RecursiveSchemaError) as excinfo:
            resolver.record_base("A")
        assert excinfo.value.chain == ["A", "B", "A"]
        assert str(excinfo.value) == "unsupported recursive schema: A -> B -> A"

    def test_all_of_cycle(self):
        resolver = _resolver({
            "A": {"allOf": [{"$ref": "#/components/schemas/B"}, {"properties": {"a": {}}}]},
            "B": {"allOf": [{"$ref": "#/components/schemas/A"}, {"properties": {"b": {}}}]},
        })
        with pytest.raises(RecursiveSchemaError):
            resolver.record_base("A")

    def test_self_reference_in_field_is_fine(self):
        resolver = _resolver({
            "Node": {"properties": {"children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}}},
        })
        assert resolver.record_base("Node") == "Node"
