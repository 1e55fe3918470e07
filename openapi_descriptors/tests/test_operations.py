import json
from pathlib import Path

import pytest

from openapi_descriptors.analyzer.schema_extractor import SchemaExtractor
from openapi_descriptors.analyzer.type_resolver import ConflictRegistry, TypeResolver
from openapi_descriptors.document import OpenApiDocument
from openapi_descriptors.operations import (
    BodyKind,
    InlineSchemaExtractor,
    ParameterExtractor,
    ParameterLocation,
    default_operation_id,
    extract_handler,
    header_property_name,
    inline_type_name,
    merged_parameters,
)

TEST_DATA = Path(__file__).parent / "test_data"


def make_document(raw):
    document = OpenApiDocument(raw)
    resolver = TypeResolver(document, ConflictRegistry("Api", [], document.schemas.keys()))
    return document, resolver


@pytest.fixture
def petstore():
    with open(TEST_DATA / "petstore.json") as f:
        return make_document(json.load(f))


def operation(document, method, path):
    return next(c for c in document.iter_operations() if c.method == method and c.path == path)


class TestParameters:
    def test_operation_parameter_overrides_path_parameter(self, petstore):
        document, _ = petstore
        merged = merged_parameters(document, operation(document, "get", "/pets"))
        assert [p["name"] for p, _ in merged] == ["X-Correlation-Id", "limit", "status"]
        assert merged[1][0]["required"] is True

    def test_required_parameters_come_first(self, petstore):
        document, resolver = petstore
        parameters = ParameterExtractor(document, resolver).extract(operation(document, "get", "/pets"))
        assert parameters.name == "ListPetsParameters"
        assert [p.name for p in parameters.parameters] == ["Limit", "CorrelationId", "Status"]

        limit, correlation, status = parameters.parameters
        assert limit.is_required and not limit.has_default
        assert correlation.location == ParameterLocation.HEADER
        assert correlation.has_default and correlation.default_value is None
        assert status.default_value == "available"
        assert not parameters.has_body

    def test_json_body(self, petstore):
        document, resolver = petstore
        parameters = ParameterExtractor(document, resolver).extract(operation(document, "post", "/pets"))
        body = parameters.body
        assert body.name == "Request"
        assert body.body_kind == BodyKind.JSON
        assert body.is_required
        assert body.type_ref.name == "CreatePetRequest"
        assert parameters.has_body and not parameters.has_file

    def test_file_body(self, petstore):
        document, resolver = petstore
        parameters = ParameterExtractor(document, resolver).extract(operation(document, "put", "/pets/{petId}/photo"))
        assert [p.name for p in parameters.parameters] == ["File"]
        assert parameters.body.body_kind == BodyKind.FILE
        assert parameters.has_file

    def test_stream_collection_body(self):
        document, resolver = make_document(
            {
                "paths": {
                    "/blobs": {
                        "post": {
                            "operationId": "uploadBlobs",
                            "requestBody": {
                                "content": {
                                    "application/octet-stream": {
                                        "schema": {"type": "array", "items": {"type": "string", "format": "binary"}}
                                    }
                                }
                            },
                        }
                    }
                }
            }
        )
        body = ParameterExtractor(document, resolver).extract(next(document.iter_operations())).body
        assert body.body_kind == BodyKind.STREAM_COLLECTION
        assert body.type_ref.is_array
        assert body.name == "File"

    def test_referenced_header_uses_reference_id(self):
        document, resolver = make_document(
            {
                "components": {
                    "parameters": {"TenantHeader": {"name": "X-Tenant", "in": "header", "schema": {"type": "string"}}}
                },
                "paths": {
                    "/items/{itemId}": {
                        "get": {
                            "operationId": "getItem",
                            "parameters": [
                                {"$ref": "#/components/parameters/TenantHeader"},
                                {"name": "itemId", "in": "path", "schema": {"type": "string"}},
                            ],
                        }
                    }
                },
            }
        )
        parameters = ParameterExtractor(document, resolver).extract(next(document.iter_operations()))
        assert [p.name for p in parameters.parameters] == ["ItemId", "TenantHeader"]
        assert parameters.parameters[0].is_required

    def test_parameters_with_the_same_identifier_get_distinct_names(self):
        document, resolver = make_document(
            {
                "paths": {
                    "/pets/{petId}": {
                        "get": {
                            "operationId": "getPet",
                            "parameters": [
                                {"name": "petId", "in": "path", "schema": {"type": "string"}},
                                {"name": "pet_id", "in": "query", "required": True, "schema": {"type": "string"}},
                            ],
                        }
                    }
                }
            }
        )
        parameters = ParameterExtractor(document, resolver).extract(next(document.iter_operations()))
        assert [(p.name, p.original_name) for p in parameters.parameters] == [
            ("PetId", "petId"),
            ("PetId2", "pet_id"),
        ]

    def test_operation_without_id(self, petstore):
        document, resolver = petstore
        assert ParameterExtractor(document, resolver).extract(operation(document, "get", "/pets/{petId}")) is None

    def test_header_property_name(self):
        assert header_property_name("X-Correlation-Id") == "CorrelationId"
        assert header_property_name("x-api-key") == "ApiKey"
        assert header_property_name("Accept-Language") == "AcceptLanguage"


class TestHandlers:
    def test_named_operation(self, petstore):
        document, _ = petstore
        handler = extract_handler(document, operation(document, "get", "/pets"))
        assert handler.handler_name == "IListPetsHandler"
        assert handler.result_name == "ListPetsResult"
        assert handler.parameter_class_name == "ListPetsParameters"
        assert handler.has_parameters
        assert handler.summary == "List pets"
        assert handler.tags == ("pets",)
        assert not handler.has_body

    def test_operation_without_id(self, petstore):
        document, _ = petstore
        handler = extract_handler(document, operation(document, "get", "/pets/{petId}"))
        assert handler.operation_id == "GET_pets_petId"
        assert handler.handler_name == "IGETPetsPetIdHandler"
        assert handler.summary == "Handler for operation: GET_pets_petId"

    def test_file_upload(self, petstore):
        document, _ = petstore
        handler = extract_handler(document, operation(document, "put", "/pets/{petId}/photo"))
        assert handler.has_body and handler.has_file
        assert handler.parameter_class_name == "UploadPhotoParameters"

    def test_no_parameters(self):
        document, _ = make_document({"paths": {"/ping": {"get": {"operationId": "ping"}}}})
        handler = extract_handler(document, next(document.iter_operations()))
        assert handler.parameter_class_name is None
        assert not handler.has_parameters

    def test_default_operation_id(self):
        assert default_operation_id("delete", "/orders/{orderId}/items") == "DELETE_orders_orderId_items"


class TestInlineSchemas:
    def test_request_and_error_response(self, petstore):
        document, resolver = petstore
        extractor = InlineSchemaExtractor(SchemaExtractor(document, resolver))
        records, enums = extractor.extract(operation(document, "post", "/pets"))
        assert [r.name for r in records] == ["CreatePetRequest", "CreatePetResponse400"]
        assert all(r.is_inline for r in records)
        assert [p.name for p in records[0].properties] == ["Name", "Tag"]
        assert enums == []

    def test_array_of_inline_objects(self):
        document, resolver = make_document(
            {
                "paths": {
                    "/events": {
                        "get": {
                            "operationId": "listEvents",
                            "responses": {
                                "default": {
                                    "content": {
                                        "application/json": {
                                            "schema": {
                                                "type": "array",
                                                "items": {"type": "object", "properties": {"id": {"type": "string"}}},
                                            }
                                        }
                                    }
                                }
                            },
                        }
                    }
                }
            }
        )
        extractor = InlineSchemaExtractor(SchemaExtractor(document, resolver))
        records, _ = extractor.extract(next(document.iter_operations()))
        assert [r.name for r in records] == ["ListEventsResponseItem"]

    def test_type_names(self):
        assert inline_type_name("listPets", "Response", "200") == "ListPetsResponse"
        assert inline_type_name("listPets", "Response", "default") == "ListPetsResponse"
        assert inline_type_name("listPets", "Response", "404") == "ListPetsResponse404"
        assert inline_type_name("createPet", "Request") == "CreatePetRequest"
