"""
Schema classifier.

Decides, for every schema, which single kind of artifact it becomes:
object, enum, array, tuple, polymorphic union, inline record or scalar.
References are always dereferenced before classification.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..document import OpenApiDocument, ref_name
from ..utils import sanitize_schema_name, to_pascal_case
from .nodes import PropertyNode, SchemaKind, SchemaNode

logger = logging.getLogger(__name__)


def json_type_of(schema: Mapping[str, Any]) -> str | None:
    """Return the single non-null JSON type of a schema, if it has one.

    OpenAPI 3.1 allows a list of types (["string", "null"]); the "null" entry
    only carries nullability.
    """
    declared = schema.get("type")
    if isinstance(declared, list):
        concrete = [t for t in declared if t != "null"]
        return concrete[0] if len(concrete) == 1 else None
    return declared


def is_nullable(schema: Mapping[str, Any]) -> bool:
    declared = schema.get("type")
    if isinstance(declared, list) and "null" in declared:
        return True
    return bool(schema.get("nullable", False))


def union_members(schema: Mapping[str, Any]) -> tuple[str | None, list[Any]]:
    """Return (keyword, members) of a oneOf/anyOf composition."""
    for keyword in ("oneOf", "anyOf"):
        members = schema.get(keyword)
        if isinstance(members, list) and members:
            return keyword, members
    return None, []


class SchemaClassifier:
    """Classifies schemas of one document."""

    def __init__(self, document: OpenApiDocument):
        self.document = document

    def classify(
        self,
        schema: Mapping[str, Any],
        name: str | None = None,
        inline: bool = False,
    ) -> SchemaNode:
        """
        Classify a schema.

        Args:
            schema: The schema, possibly a `$ref`
            name: Name of the schema, used to name nested inline types
            inline: Whether the schema is anonymous (request/response/property);
                inline objects become INLINE_RECORD instead of OBJECT

        Returns:
            The classified node, with children classified recursively

        Raises:
            UnresolvedReferenceError: If a reference cannot be dereferenced
        """
        target_name = ref_name(schema)
        if target_name is not None:
            target = self.document.deref(schema)
            node = self._build(target, target_name, inline=False)
            node.ref_name = target_name
            return node
        return self._build(schema, name, inline)

    def classify_named(self, name: str) -> SchemaNode:
        """Classify a component schema by name."""
        return self.classify(self.document.schema_by_name(name), name=name)

    def kind_of(self, schema: Mapping[str, Any], inline: bool = False) -> SchemaKind:
        """Return the kind of a schema without building its children."""
        schema = self.document.deref(schema)
        keyword, _ = union_members(schema)
        if keyword is not None:
            return SchemaKind.POLYMORPHIC_UNION
        if isinstance(schema.get("prefixItems"), list) and schema["prefixItems"]:
            return SchemaKind.TUPLE

        json_type = json_type_of(schema)
        if json_type == "array":
            return SchemaKind.ARRAY
        if self._is_string_enum(schema, json_type):
            return SchemaKind.ENUM
        if json_type in (None, "object"):
            properties, _ = self.merged_properties(schema)
            if properties:
                return SchemaKind.INLINE_RECORD if inline else SchemaKind.OBJECT
        return SchemaKind.SCALAR

    def merged_properties(
        self, schema: Mapping[str, Any], _seen: set[str] | None = None
    ) -> tuple[dict[str, Any], set[str]]:
        """
        Collect properties and required names, following allOf (base first).

        Args:
            schema: A dereferenced schema

        Returns:
            Tuple of (ordered property name -> property schema, required names)
        """
        seen = _seen if _seen is not None else set()
        properties: dict[str, Any] = {}
        required: set[str] = set()

        for part in schema.get("allOf") or []:
            part_ref = part.get("$ref") if isinstance(part, Mapping) else None
            if part_ref is not None:
                if part_ref in seen:
                    continue
                seen.add(part_ref)
            resolved = self.document.deref(part)
            part_props, part_required = self.merged_properties(resolved, seen)
            properties.update(part_props)
            required |= part_required

        own = schema.get("properties") or {}
        if isinstance(own, Mapping):
            properties.update(own)
        required |= set(schema.get("required") or [])
        return properties, required

    def _build(self, schema: Mapping[str, Any], name: str | None, inline: bool) -> SchemaNode:
        """Build a node for a dereferenced schema."""
        kind = self.kind_of(schema, inline)
        # Prefix of nested type names; must itself be a valid type name
        prefix = sanitize_schema_name(name) if name else ""
        discriminator = schema.get("discriminator")
        node = SchemaNode(
            kind=kind,
            name=name,
            json_type=json_type_of(schema),
            format=schema.get("format"),
            description=schema.get("description"),
            is_deprecated=bool(schema.get("deprecated", False)),
            is_nullable=is_nullable(schema),
            discriminator_hint=(
                discriminator.get("propertyName") if isinstance(discriminator, Mapping) else None
            ),
            raw=schema,
        )
        logger.debug("Classified schema %s as %s", name or "<anonymous>", kind.value)

        if kind == SchemaKind.POLYMORPHIC_UNION:
            node.union_keyword, members = union_members(schema)
            node.variants = [
                self._child(member, f"{prefix}Variant{i}")
                for i, member in enumerate(members, start=1)
            ]
        elif kind == SchemaKind.TUPLE:
            node.prefix_items = [
                self._child(item, f"{prefix}Item{i}")
                for i, item in enumerate(schema["prefixItems"], start=1)
            ]
            trailing = schema.get("items")
            if isinstance(trailing, Mapping):
                node.additional_items = self._child(trailing, f"{prefix}AdditionalItem")
        elif kind == SchemaKind.ARRAY:
            items = schema.get("items")
            if isinstance(items, Mapping):
                node.element = self._child(items, f"{prefix}Item")
        elif kind == SchemaKind.ENUM:
            node.json_type = node.json_type or "string"
            node.enum_values = list(schema["enum"])
        elif kind in (SchemaKind.OBJECT, SchemaKind.INLINE_RECORD):
            node.json_type = "object"
            node.properties = self._build_properties(schema, prefix)
        return node

    def _build_properties(self, schema: Mapping[str, Any], owner: str) -> list[PropertyNode]:
        """Classify the (allOf-merged) properties of an object schema."""
        properties, required = self.merged_properties(schema)
        result: list[PropertyNode] = []
        for prop_name, prop_schema in properties.items():
            if not isinstance(prop_schema, Mapping):
                continue
            resolved = self.document.deref(prop_schema)
            result.append(
                PropertyNode(
                    name=prop_name,
                    schema=self._child(prop_schema, f"{owner}{to_pascal_case(prop_name)}"),
                    is_required=prop_name in required,
                    has_default="default" in resolved,
                    default_value=resolved.get("default"),
                )
            )
        return result

    def _child(self, schema: Mapping[str, Any], name: str) -> SchemaNode:
        """Classify a nested schema.

        Referenced children are classified shallowly (kind only): they are
        emitted on their own as named schemas, and expanding them here would
        loop on recursive schemas.
        """
        target_name = ref_name(schema)
        if target_name is None:
            return self._build(schema, name, inline=True)

        target = self.document.deref(schema)
        return SchemaNode(
            kind=self.kind_of(target),
            name=target_name,
            ref_name=target_name,
            json_type=json_type_of(target),
            format=target.get("format"),
            description=target.get("description"),
            is_deprecated=bool(target.get("deprecated", False)),
            is_nullable=is_nullable(target) or is_nullable(schema),
            is_expanded=False,
            raw=target,
        )

    @staticmethod
    def _is_string_enum(schema: Mapping[str, Any], json_type: str | None) -> bool:
        values = schema.get("enum")
        if not isinstance(values, list) or not values:
            return False
        if json_type == "string":
            return True
        return json_type is None and all(isinstance(v, str) for v in values if v is not None)
