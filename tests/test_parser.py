"""
Unit tests for document loading and the operation model

Tests:
- load_document: YAML/JSON loading and failures
- OpenAPIParser: operation shapes, parameters, auth detection
"""

import json
import pytest
import yaml

from rest_dependency_graph import (OpenAPIParser, load_document, FieldDescriptor, ParamDescriptor,
                                   HTTPMethod, ParameterLocation)
from rest_dependency_graph.parser import pick_media_type


class TestLoadDocument:
    """Tests for load_document"""

    def test_yaml(self, tmp_path, shop_spec):
        """YAML files are loaded with safe_load"""
        path = tmp_path / "openapi.yaml"
        path.write_text(yaml.safe_dump(shop_spec), encoding="utf-8")
        assert load_document(str(path))["openapi"] == "3.0.3"

    def test_json(self, tmp_path, shop_spec):
        """.json files are loaded as JSON"""
        path = tmp_path / "openapi.json"
        path.write_text(json.dumps(shop_spec), encoding="utf-8")
        assert "/carts" in load_document(str(path))["paths"]

    def test_unparseable(self, tmp_path):
        """Broken documents raise ValueError"""
        path = tmp_path / "broken.yaml"
        path.write_text("paths: [unclosed", encoding="utf-8")
        with pytest.raises(ValueError):
            load_document(str(path))

    def test_not_a_mapping(self, tmp_path):
        """A top-level list is rejected"""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_document(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_document(str(tmp_path / "nope.yaml"))


class TestOpenAPIParser:
    """Tests for OpenAPIParser"""

    def test_operations_in_document_order(self, shop_operations):
        """Every operation is extracted in declaration order"""
        assert [op.id for op in shop_operations] == [
            "register", "login", "listProducts", "createCart",
            "addCartItem", "createOrder", "getOrder", "GET /health"
        ]

    def test_operation_id_fallback(self, shop_operations):
        """Operations without operationId are named 'METHOD path'"""
        health = shop_operations[-1]
        assert health.method == HTTPMethod.GET
        assert health.path == "/health"

    def test_request_and_response_fields(self, shop_operations):
        """Body fields are flattened and tagged with their schema name"""
        by_id = {op.id: op for op in shop_operations}
        add_item = by_id["addCartItem"]
        assert [f.name for f in add_item.request_fields] == ["productId", "quantity"]
        assert add_item.response_fields == (
            FieldDescriptor("id", "string", entity="Cart"),
            FieldDescriptor("items", "array", "object", entity="Cart"),
        )
        assert by_id["listProducts"].response_fields == (FieldDescriptor("[]", "array", "object"),)

    def test_path_params(self, shop_operations):
        """Path parameters are projected with their location"""
        add_item = {op.id: op for op in shop_operations}["addCartItem"]
        assert add_item.path_params == (ParamDescriptor("cartId", "string", location=ParameterLocation.PATH),)
        assert add_item.other_params == ()

    def test_requires_auth(self, shop_operations):
        """Bearer security marks an operation as requiring auth"""
        flags = {op.id: op.requires_auth for op in shop_operations}
        assert flags["createCart"] and flags["getOrder"]
        assert not flags["login"] and not flags["listProducts"]

    def test_global_security_inherited(self):
        """Operations without their own security use the document-level one"""
        spec = {
            "openapi": "3.0.0",
            "security": [{"jwtBearer": []}],
            "paths": {
                "/me": {"get": {"responses": {"200": {"description": "ok"}}}},
                "/public": {"get": {"security": [], "responses": {"200": {"description": "ok"}}}}
            }
        }
        operations = OpenAPIParser(spec=spec).parse()
        assert [op.requires_auth for op in operations] == [True, False]

    def test_api_key_scheme_is_not_bearer(self):
        """Declared schemes are judged by type and scheme, not by name"""
        spec = {
            "openapi": "3.0.0",
            "components": {"securitySchemes": {"bearerKey": {"type": "apiKey", "in": "header", "name": "X-Key"}}},
            "paths": {"/me": {"get": {"security": [{"bearerKey": []}],
                                      "responses": {"200": {"description": "ok"}}}}}
        }
        assert OpenAPIParser(spec=spec).parse()[0].requires_auth is False

    def test_path_level_and_referenced_parameters(self):
        """Path-item parameters merge with operation ones and $refs are followed"""
        spec = {
            "openapi": "3.0.0",
            "components": {"parameters": {
                "Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}}
            }},
            "paths": {
                "/users/{userId}/posts": {
                    "parameters": [
                        {"name": "userId", "in": "path", "required": True, "schema": {"type": "string"}},
                        {"name": "trace", "in": "header"}
                    ],
                    "get": {
                        "parameters": [
                            {"$ref": "#/components/parameters/Limit"},
                            {"name": "trace", "in": "header", "schema": {"type": "integer"}}
                        ],
                        "responses": {"200": {"description": "ok"}}
                    }
                }
            }
        }
        operation = OpenAPIParser(spec=spec).parse()[0]
        assert [p.name for p in operation.path_params] == ["userId"]
        assert {p.name: p.type for p in operation.other_params} == {"trace": "integer", "limit": "integer"}

    def test_parameter_without_schema_defaults_to_string(self):
        spec = {
            "openapi": "3.0.0",
            "paths": {"/search": {"get": {
                "parameters": [{"name": "q", "in": "query"}],
                "responses": {"200": {"description": "ok"}}
            }}}
        }
        assert OpenAPIParser(spec=spec).parse()[0].other_params[0].type == "string"

    def test_operation_without_success_response_has_no_outputs(self):
        """Only 2xx responses contribute response fields"""
        spec = {
            "openapi": "3.0.0",
            "paths": {"/broken": {"get": {"responses": {"404": {
                "content": {"application/json": {"schema": {"type": "object", "properties": {"id": {"type": "string"}}}}}
            }}}}}
        }
        assert OpenAPIParser(spec=spec).parse()[0].response_fields == ()

    def test_operation_without_responses_is_skipped(self):
        spec = {"openapi": "3.0.0", "paths": {"/x": {"get": {}}}}
        assert OpenAPIParser(spec=spec).parse() == []


class TestPickMediaType:
    """Tests for JSON-compatible media type selection"""

    def test_prefers_application_json(self):
        content = {"text/plain": {"schema": {"type": "string"}}, "application/json": {"schema": {"type": "object"}}}
        assert pick_media_type(content) == {"schema": {"type": "object"}}

    def test_falls_back_to_json_like(self):
        content = {"text/plain": {}, "application/problem+json": {"example": 1}}
        assert pick_media_type(content) == {"example": 1}

    def test_falls_back_to_first(self):
        assert pick_media_type({"text/plain": {"example": "x"}}) == {"example": "x"}

    def test_empty(self):
        assert pick_media_type({}) is None
