"""
Schema extraction.

Walks components/schemas and turns each classified schema into the
descriptor the emission layer needs: records for objects, enum, tuple and
array descriptors, and polymorphic descriptors that own their variants.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..document import OpenApiDocument
from ..schema_ast.classifier import SchemaClassifier
from ..schema_ast.nodes import SchemaKind, SchemaNode
from ..utils import sanitize_identifier, sanitize_schema_name, to_pascal_case, unique_name
from .enums import EnumDescriptor, build_enum
from .polymorphic import PolymorphicAnalyzer, PolymorphicConfig
from .tuples import TupleDescriptor, build_tuple
from .type_resolver import TypeReference, TypeResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyDescriptor:
    """A property of a record."""

    name: str  # Identifier in the generated type
    original_name: str  # JSON property name
    type_ref: TypeReference
    is_required: bool = False
    has_default: bool = False
    default_value: Any = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "original_name": self.original_name,
            "type": self.type_ref.to_dict(),
            "is_required": self.is_required,
            "has_default": self.has_default,
            "default_value": self.default_value,
            "description": self.description,
        }


@dataclass(frozen=True)
class RecordDescriptor:
    """An object type."""

    name: str
    properties: tuple[PropertyDescriptor, ...] = field(default_factory=tuple)

    # Base union for variants of a discriminated union
    base_type: str | None = None
    discriminator_value: str | None = None

    description: str | None = None
    is_deprecated: bool = False

    # Anonymous object nested in another schema or in a request/response
    is_inline: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "base_type": self.base_type,
            "discriminator_value": self.discriminator_value,
            "description": self.description,
            "is_deprecated": self.is_deprecated,
            "is_inline": self.is_inline,
            "properties": [p.to_dict() for p in self.properties],
        }


@dataclass(frozen=True)
class ArrayDescriptor:
    """A named array schema (type alias of a list)."""

    name: str
    element: TypeReference
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "element": self.element.to_dict(), "description": self.description}


@dataclass(frozen=True)
class PolymorphicDescriptor:
    """A union type with the variant records nested under it."""

    config: PolymorphicConfig
    variants: tuple[RecordDescriptor, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.config.base_type_name

    def to_dict(self) -> dict[str, Any]:
        d = self.config.to_dict()
        d["variant_records"] = [v.to_dict() for v in self.variants]
        return d


@dataclass
class SchemaExtraction:
    """Descriptors extracted from components/schemas."""

    records: list[RecordDescriptor] = field(default_factory=list)
    enums: list[EnumDescriptor] = field(default_factory=list)
    tuples: list[TupleDescriptor] = field(default_factory=list)
    arrays: list[ArrayDescriptor] = field(default_factory=list)
    polymorphic: list[PolymorphicDescriptor] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.records or self.enums or self.tuples or self.arrays or self.polymorphic)


class SchemaExtractor:
    """Extracts descriptors for the named schemas of a document."""

    def __init__(
        self,
        document: OpenApiDocument,
        resolver: TypeResolver,
        classifier: SchemaClassifier | None = None,
        include_deprecated: bool = False,
    ):
        """
        Initialize the extractor.

        Args:
            document: The document to extract from
            resolver: Type resolver of the run (owns the conflict registry)
            classifier: Schema classifier, created when omitted
            include_deprecated: Whether deprecated schemas are extracted
        """
        self.document = document
        self.resolver = resolver
        self.classifier = classifier or SchemaClassifier(document)
        self.include_deprecated = include_deprecated
        self._nested_records: list[RecordDescriptor] = []
        self._nested_enums: list[EnumDescriptor] = []
        self._taken_names: set[str] | None = None

    def extract(self) -> SchemaExtraction:
        """
        Extract all schema descriptors.

        Returns:
            SchemaExtraction; empty when the document has no schemas
        """
        result = SchemaExtraction()
        analyzer = PolymorphicAnalyzer(self.document, self.classifier)
        configs = {
            name: config
            for name, config in analyzer.analyze_document().items()
            if self._is_included(self.document.schemas[name])
        }
        bases = PolymorphicAnalyzer.variant_base_types(configs)
        variant_records: dict[str, list[RecordDescriptor]] = {}

        for name, schema in self.document.schemas.items():
            if not isinstance(schema, Mapping) or "$ref" in schema:
                continue
            if not self._is_included(schema):
                logger.debug("Skipping deprecated schema %s", name)
                continue

            # Register every schema name up front so references resolve the same way
            self.resolver.registry.canonical_name(name)
            node = self.classifier.classify(schema, name=name)
            type_name = sanitize_schema_name(name)

            if node.kind == SchemaKind.POLYMORPHIC_UNION:
                continue
            if node.kind == SchemaKind.ENUM:
                enum = build_enum(type_name, schema)
                if enum is not None:
                    result.enums.append(enum)
            elif node.kind == SchemaKind.TUPLE:
                result.tuples.append(build_tuple(type_name, schema, self.resolver))
            elif node.kind == SchemaKind.ARRAY:
                result.arrays.append(self._build_array(type_name, node))
            elif node.kind == SchemaKind.OBJECT:
                base = bases.get(name)
                discriminator_value = None
                if base is not None:
                    discriminator_value = next(
                        v.discriminator_value for v in configs[base].variants if v.type_name == name
                    )
                record = self.build_record(
                    node, type_name, base_type=base, discriminator_value=discriminator_value
                )
                if base is not None:
                    variant_records.setdefault(base, []).append(record)
                else:
                    result.records.append(record)
            else:
                logger.debug("Schema %s is a scalar, nothing to emit", name)

        for name, config in configs.items():
            result.polymorphic.append(
                PolymorphicDescriptor(config=config, variants=tuple(variant_records.get(name, [])))
            )

        result.records.extend(self._nested_records)
        result.enums.extend(self._nested_enums)
        self._nested_records = []
        self._nested_enums = []

        logger.debug(
            "Extracted %d records, %d enums, %d tuples, %d arrays, %d unions",
            len(result.records),
            len(result.enums),
            len(result.tuples),
            len(result.arrays),
            len(result.polymorphic),
        )
        return result

    def build_record(
        self,
        node: SchemaNode,
        type_name: str,
        base_type: str | None = None,
        discriminator_value: str | None = None,
        is_inline: bool = False,
    ) -> RecordDescriptor:
        """
        Build a record from an object (or inline record) node.

        Nested inline objects and enums found in its properties are collected
        and emitted as their own named types.

        Args:
            node: The classified object node
            type_name: Name of the record
            base_type: Union the record is a variant of
            discriminator_value: Literal identifying the record in its union
            is_inline: Whether the record comes from an anonymous schema

        Returns:
            RecordDescriptor with properties without default first
        """
        # A property may not share the name of its type
        taken = {type_name.lower()}
        properties: list[PropertyDescriptor] = []
        for prop in node.properties:
            name = to_pascal_case(prop.name) or sanitize_identifier(prop.name)
            if name.lower() == type_name.lower():
                name = f"{name}Value"
            name = unique_name(name, taken)

            properties.append(
                PropertyDescriptor(
                    name=name,
                    original_name=prop.name,
                    type_ref=self.property_type(prop.schema, prop.is_required),
                    is_required=prop.is_required,
                    has_default=prop.has_default,
                    default_value=prop.default_value,
                    description=prop.schema.description if prop.schema else None,
                )
            )

        properties.sort(key=lambda p: p.has_default)
        return RecordDescriptor(
            name=type_name,
            properties=tuple(properties),
            base_type=base_type,
            discriminator_value=discriminator_value,
            description=node.description,
            is_deprecated=node.is_deprecated,
            is_inline=is_inline,
        )

    def property_type(self, node: SchemaNode | None, required: bool) -> TypeReference:
        """
        Resolve the type of a property or element node.

        Inline objects and enums become nested named types.
        """
        if node is None:
            return TypeReference(name="any", is_nullable=not required)
        nullable = not required or node.is_nullable

        if node.is_reference:
            return self.resolver.resolve(node.ref_name, required=not nullable)

        if node.kind in (SchemaKind.INLINE_RECORD, SchemaKind.ENUM):
            return self._nested_type(node, nullable)

        if node.kind == SchemaKind.ARRAY and node.element is not None and not node.element.is_reference:
            if node.element.kind in (SchemaKind.INLINE_RECORD, SchemaKind.ENUM):
                return TypeReference(
                    name="array",
                    is_nullable=nullable,
                    is_reference_type=True,
                    element=self._nested_type(node.element, False),
                    is_array=True,
                )

        return self.resolver.resolve_schema(node.raw, required=not nullable)

    def _nested_type(self, node: SchemaNode, nullable: bool) -> TypeReference:
        """Emit an inline object/enum as a named type and reference it."""
        name = self._reserve_nested_name(node.name or "Anonymous")
        if node.kind == SchemaKind.ENUM:
            enum = build_enum(name, node.raw)
            if enum is not None:
                self._nested_enums.append(enum)
            return TypeReference(name=name, is_nullable=nullable, is_reference_type=False, is_schema=True)

        self._nested_records.append(self.build_record(node, name, is_inline=True))
        return TypeReference(name=name, is_nullable=nullable, is_reference_type=True, is_schema=True)

    def _reserve_nested_name(self, name: str) -> str:
        """
        Pick a free name for a nested type.

        Component schema names and nested types emitted earlier in the run
        are taken; a taken name gets the first free numeric suffix. Reserved
        type names get a Model suffix.
        """
        if self._taken_names is None:
            self._taken_names = {sanitize_schema_name(n).lower() for n in self.document.schemas}
        candidate = name
        if self.resolver.registry.has_conflict(candidate):
            candidate = f"{name}Model"
        return unique_name(candidate, self._taken_names)

    def take_nested(self) -> tuple[list[RecordDescriptor], list[EnumDescriptor]]:
        """Return and clear the nested types collected outside of extract()."""
        records, enums = self._nested_records, self._nested_enums
        self._nested_records = []
        self._nested_enums = []
        return records, enums

    def _build_array(self, type_name: str, node: SchemaNode) -> ArrayDescriptor:
        if node.element is None:
            element = TypeReference(name="any")
        else:
            element = self.property_type(node.element, True)
        return ArrayDescriptor(name=type_name, element=element, description=node.description)

    def _is_included(self, schema: Mapping[str, Any]) -> bool:
        return self.include_deprecated or not schema.get("deprecated", False)
