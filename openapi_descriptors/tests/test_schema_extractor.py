from openapi_descriptors.analyzer import ConflictRegistry, SchemaExtractor, TypeResolver
from openapi_descriptors.document import OpenApiDocument


def extract(schemas, include_deprecated=False):
    document = OpenApiDocument({"components": {"schemas": schemas}})
    resolver = TypeResolver(document, ConflictRegistry("Api", [], document.schemas.keys()))
    return SchemaExtractor(document, resolver, include_deprecated=include_deprecated).extract()


class TestSchemaExtractor:
    def test_empty(self):
        assert extract({}).is_empty()

    def test_property_names(self):
        result = extract(
            {
                "Order": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "ID": {"type": "integer"},
                        "order": {"type": "string"},
                        "created-at": {"type": "string", "format": "date-time"},
                    },
                }
            }
        )
        order = result.records[0]
        assert [p.name for p in order.properties] == ["Id", "Id2", "OrderValue", "CreatedAt"]
        assert [p.original_name for p in order.properties] == ["id", "ID", "order", "created-at"]
        assert order.properties[3].type_ref.name == "string:date-time"
        assert order.properties[1].type_ref.name == "integer"

    def test_properties_with_default_come_last(self):
        result = extract(
            {
                "Page": {
                    "type": "object",
                    "properties": {
                        "size": {"type": "integer", "default": 20},
                        "cursor": {"type": "string"},
                        "total": {"type": "integer"},
                    },
                    "required": ["total"],
                }
            }
        )
        page = result.records[0]
        assert [p.name for p in page.properties] == ["Cursor", "Total", "Size"]
        assert page.properties[-1].default_value == 20

    def test_nested_array_item_enum(self):
        result = extract(
            {
                "Order": {
                    "type": "object",
                    "properties": {"statuses": {"type": "array", "items": {"type": "string", "enum": ["open", "closed"]}}},
                }
            }
        )
        assert [e.name for e in result.enums] == ["OrderStatusesItem"]
        statuses = result.records[0].properties[0]
        assert statuses.type_ref.is_array
        assert statuses.type_ref.element.name == "OrderStatusesItem"

    def test_skips_references_and_deprecated(self):
        schemas = {
            "Alias": {"$ref": "#/components/schemas/Item"},
            "Item": {"type": "object", "properties": {"a": {"type": "string"}}},
            "Old": {"type": "object", "deprecated": True, "properties": {"a": {"type": "string"}}},
        }
        assert [r.name for r in extract(schemas).records] == ["Item"]
        names = [r.name for r in extract(schemas, include_deprecated=True).records]
        assert names == ["Item", "Old"]
        assert extract(schemas, include_deprecated=True).records[1].is_deprecated

    def test_custom_converter_variants_stay_independent(self):
        result = extract(
            {
                "Value": {"oneOf": [{"$ref": "#/components/schemas/A"}, {"$ref": "#/components/schemas/B"}]},
                "A": {"type": "object", "properties": {"a": {"type": "string"}}},
                "B": {"type": "object", "properties": {"b": {"type": "string"}}},
            }
        )
        assert [r.name for r in result.records] == ["A", "B"]
        assert result.polymorphic[0].config.uses_custom_converter
        assert result.polymorphic[0].variants == ()

    def test_dotted_names(self):
        result = extract({"Pet.Dto": {"type": "object", "properties": {"a": {"type": "string"}}}})
        assert result.records[0].name == "Pet_Dto"

    def test_properties_mapping_to_the_same_name_are_all_kept(self):
        result = extract(
            {
                "Person": {
                    "type": "object",
                    "properties": {"first_name": {"type": "string"}, "firstName": {"type": "string"}},
                }
            }
        )
        person = result.records[0]
        assert [(p.name, p.original_name) for p in person.properties] == [
            ("FirstName", "first_name"),
            ("FirstName2", "firstName"),
        ]

    def test_nested_types_do_not_reuse_component_names(self):
        result = extract(
            {
                "Pet": {
                    "type": "object",
                    "properties": {
                        "owner": {"type": "object", "properties": {"name": {"type": "string"}}},
                        "status": {"type": "string", "enum": ["a", "b"]},
                    },
                },
                "PetOwner": {"type": "object", "properties": {"id": {"type": "string"}}},
                "PetStatus": {"type": "string", "enum": ["x", "y"]},
            }
        )
        assert [r.name for r in result.records] == ["Pet", "PetOwner", "PetOwner2"]
        assert [e.name for e in result.enums] == ["PetStatus", "PetStatus2"]
        pet = result.records[0]
        types = {p.original_name: p.type_ref.name for p in pet.properties}
        assert types == {"owner": "PetOwner2", "status": "PetStatus2"}

    def test_nested_names_of_dotted_schemas(self):
        result = extract(
            {
                "Pet.Dto": {
                    "type": "object",
                    "properties": {"address": {"type": "object", "properties": {"city": {"type": "string"}}}},
                }
            }
        )
        assert [r.name for r in result.records] == ["Pet_Dto", "Pet_DtoAddress"]
        assert result.records[0].properties[0].type_ref.name == "Pet_DtoAddress"
