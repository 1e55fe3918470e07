from unittest import TestCase

from openapi_descriptors.analyzer.enums import build_enum, member_name_for, needs_wire_value
from openapi_descriptors.analyzer.tuples import ADDITIONAL_ITEMS_FIELD, build_tuple
from openapi_descriptors.analyzer.type_resolver import ConflictRegistry, TypeResolver
from openapi_descriptors.document import OpenApiDocument

POINT = {
    "type": "array",
    "prefixItems": [
        {"type": "number", "description": "x coordinate"},
        {"type": "number", "description": "y coordinate"},
        {"type": "number"},
    ],
}


class TestEnums(TestCase):
    def test_member_names_are_identifiers(self):
        enum = build_enum("PetStatus", {"type": "string", "enum": ["available", "in-progress", "SOLD", "*", "123"]})
        names = [m.name for m in enum.members]
        self.assertEqual(names, ["Available", "InProgress", "SOLD", "All", "_123"])
        for name in names:
            self.assertTrue(name.isidentifier())

    def test_round_trip(self):
        enum = build_enum("PetStatus", {"enum": ["available", "in-progress", "SOLD", "*"]})
        for member in enum.members:
            self.assertEqual(enum.decode(enum.encode(member.name)), member.name)
            self.assertEqual(enum.encode(enum.decode(member.value)), member.value)

    def test_wire_values(self):
        self.assertTrue(needs_wire_value("in_progress"))
        self.assertTrue(needs_wire_value("a:b"))
        self.assertTrue(needs_wire_value("lower"))
        self.assertTrue(needs_wire_value("*"))
        self.assertFalse(needs_wire_value("Upper"))

        enum = build_enum("E", {"enum": ["Upper", "lower"]})
        self.assertEqual([m.needs_wire_value for m in enum.members], [False, True])
        self.assertTrue(enum.has_wire_values)

    def test_colliding_names_are_deduplicated(self):
        enum = build_enum("E", {"enum": ["a-b", "a_b"]})
        self.assertEqual([m.name for m in enum.members], ["AB", "AB2"])
        self.assertEqual(enum.decode("a_b"), "AB2")

    def test_wildcard(self):
        self.assertEqual(member_name_for("*"), "All")

    def test_empty_enum(self):
        self.assertIsNone(build_enum("E", {"type": "string", "enum": []}))

    def test_unknown_member(self):
        enum = build_enum("E", {"enum": ["A"]})
        with self.assertRaises(KeyError):
            enum.encode("B")
        with self.assertRaises(KeyError):
            enum.decode("b")


class TestTuples(TestCase):
    def setUp(self):
        self.resolver = TypeResolver(OpenApiDocument({}), ConflictRegistry())

    def test_strict_tuple(self):
        descriptor = build_tuple("Point", POINT, self.resolver)
        self.assertTrue(descriptor.is_strict)
        self.assertEqual(descriptor.field_names, ["X", "Y", "Item3"])
        self.assertEqual([e.type_ref.name for e in descriptor.elements], ["number"] * 3)

    def test_items_false_is_strict(self):
        descriptor = build_tuple("Point", {**POINT, "items": False}, self.resolver)
        self.assertTrue(descriptor.is_strict)
        self.assertEqual(len(descriptor.field_names), 3)

    def test_trailing_items(self):
        descriptor = build_tuple("Point", {**POINT, "items": {"type": "string"}}, self.resolver)
        self.assertFalse(descriptor.is_strict)
        self.assertEqual(descriptor.field_names, ["X", "Y", "Item3", ADDITIONAL_ITEMS_FIELD])
        self.assertTrue(descriptor.additional_items.is_array)
        self.assertEqual(descriptor.additional_items.element.name, "string")

    def test_duplicate_element_names(self):
        schema = {
            "prefixItems": [
                {"type": "number", "description": "value one"},
                {"type": "number", "description": "value two"},
            ]
        }
        descriptor = build_tuple("Pair", schema, self.resolver)
        self.assertEqual(descriptor.field_names, ["Value", "Value2"])
