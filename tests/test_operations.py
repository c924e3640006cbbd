"""Tests for the operations module."""

from clientgen.config import GeneratorOptions
from clientgen.diagnostics import Diagnostics
from clientgen.operations import derive_operation_id, parse_operations, plain_text
from clientgen.schema_parser import Primitive, Reference

_SPEC: dict = {
    "paths": {
        "/pets/{petId}": {
            "parameters": [
                {"name": "petId", "in": "path", "schema": {"type": "integer"}},
                {"name": "verbose", "in": "query", "schema": {"type": "boolean"}},
            ],
            "get": {
                "operationId": "getPet",
                "tags": ["pets", "animals"],
                "summary": "Get a <b>pet</b>",
                "parameters": [
                    {"name": "verbose", "in": "query", "required": True, "schema": {"type": "string"}},
                    {"$ref": "#/components/parameters/TraceId"},
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {"$ref": "#/components/responses/PetResponse"},
                    "4xx": {"description": "Client error"},
                    "default": {"description": "Error"},
                },
            },
            "post": {
                "requestBody": {"$ref": "#/components/requestBodies/PetBody"},
                "responses": {"204": {"description": "Stored"}},
            },
        },
    },
    "components": {
        "parameters": {
            "TraceId": {"name": "X-Trace-Id", "in": "header", "schema": {"type": "string"}},
        },
        "responses": {
            "PetResponse": {
                "description": "A pet",
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
            },
        },
        "requestBodies": {
            "PetBody": {
                "required": True,
                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
            },
        },
    },
}


class TestDeriveOperationId:
    def test_path_params(self):
        assert derive_operation_id("GET", "/pets/{petId}") == "get pets petId"

    def test_root(self):
        assert derive_operation_id("post", "/") == "post"


class TestPlainText:
    def test_tags_removed_and_whitespace_collapsed(self):
        assert plain_text("<p>Find a\n  <b>pet</b></p>") == "Find a pet"

    def test_entities_decoded_after_tags(self):
        assert plain_text("Use &lt;b&gt; &amp; friends") == "Use <b> & friends"

    def test_missing(self):
        assert plain_text(None) == ""


class TestParseOperations:
    """Test raw paths -> OperationDescriptor list."""

    @classmethod
    def setup_class(cls):
        cls.diagnostics = Diagnostics()
        cls.operations = parse_operations(_SPEC, GeneratorOptions(), cls.diagnostics)
        cls.get, cls.post = cls.operations

    def test_one_descriptor_per_method(self):
        assert [(op.http_method, op.path) for op in self.operations] == [
            ("get", "/pets/{petId}"),
            ("post", "/pets/{petId}"),
        ]

    def test_first_tag_groups(self):
        assert self.get.tag == "pets"
        assert self.get.tags == ["pets", "animals"]

    def test_missing_tag_falls_back(self):
        assert self.post.tag == "default"

    def test_missing_operation_id_is_derived(self):
        assert self.post.operation_id == "post pets petId"

    def test_inherited_parameters_are_merged(self):
        params = [(p.name, p.location) for p in self.get.parameters]
        assert params == [("petId", "path"), ("verbose", "query"), ("X-Trace-Id", "header")]

    def test_operation_parameter_overrides_inherited(self):
        verbose = next(p for p in self.get.parameters if p.name == "verbose")
        assert verbose.required
        assert verbose.schema == Primitive("string")

    def test_path_parameters_are_required(self):
        assert self.get.parameters[0].required

    def test_cookie_parameters_are_skipped(self):
        assert all(p.location != "cookie" for p in self.get.parameters)
        messages = [d.message for d in self.diagnostics.for_location("GET /pets/{petId}")]
        assert any("cookie" in message for message in messages)

    def test_response_refs_are_resolved(self):
        payload = self.get.responses["200"].payload("application/json")
        assert payload.schema == Reference("Pet")

    def test_status_keys_are_normalized(self):
        assert list(self.get.responses) == ["200", "4XX", "default"]
        assert self.get.responses["default"].is_default

    def test_request_body_ref(self):
        assert self.post.request_body.required
        assert list(self.post.request_body.content) == ["application/json"]

    def test_html_stripped_from_summary(self):
        assert self.get.summary == "Get a pet"

    def test_diagnostics_for_fallbacks(self):
        messages = [d.message for d in self.diagnostics.for_location("POST /pets/{petId}")]
        assert any("no tag" in message for message in messages)
        assert any("no operationId" in message for message in messages)

    def test_custom_ungrouped_tag(self):
        operations = parse_operations(_SPEC, GeneratorOptions(ungrouped_tag="misc"))
        assert operations[1].tag == "misc"


class TestResponsePayload:
    def test_wildcard_fallback(self):
        spec = {
            "paths": {
                "/x": {
                    "get": {
                        "responses": {"200": {"content": {"*/*": {"schema": {"type": "string"}}}}},
                    },
                },
            },
        }
        (operation,) = parse_operations(spec)
        assert operation.responses["200"].payload("application/json").schema == Primitive("string")
