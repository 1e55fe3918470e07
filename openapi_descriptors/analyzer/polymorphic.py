"""
Polymorphic (oneOf / anyOf) analysis.

Determines how a union is told apart at runtime: through an explicit
discriminator, through a discriminator inferred from the variants, or
(when nothing distinguishes the variants) by trying each variant in order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ..document import OpenApiDocument, ref_name
from ..errors import DescriptorError
from ..schema_ast.classifier import SchemaClassifier, union_members
from ..utils import to_snake_case

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PolymorphicVariant:
    """One member of a union."""

    type_name: str
    discriminator_value: str | None = None


@dataclass(frozen=True)
class PolymorphicConfig:
    """How a union type is (de)serialized.

    When discriminator_property is set every variant carries its literal.
    Otherwise uses_custom_converter is set and variants carry no literal:
    consumers decode by trying each variant in declaration order.
    """

    base_type_name: str
    discriminator_property: str | None
    variants: tuple[PolymorphicVariant, ...] = field(default_factory=tuple)
    is_discriminator_explicit: bool = False
    uses_custom_converter: bool = False
    is_one_of: bool = True

    def __post_init__(self):
        if self.discriminator_property is not None:
            if self.uses_custom_converter:
                raise ValueError("A discriminated union does not use a custom converter")
            missing = [v.type_name for v in self.variants if v.discriminator_value is None]
            if missing:
                raise ValueError(f"Variants without discriminator value: {', '.join(missing)}")
        else:
            if not self.uses_custom_converter:
                raise ValueError("A union without discriminator must use a custom converter")
            if any(v.discriminator_value is not None for v in self.variants):
                raise ValueError("A union without discriminator cannot carry discriminator values")

    @property
    def variant_names(self) -> list[str]:
        return [v.type_name for v in self.variants]

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_type_name": self.base_type_name,
            "discriminator_property": self.discriminator_property,
            "variants": [
                {"type_name": v.type_name, "discriminator_value": v.discriminator_value}
                for v in self.variants
            ],
            "is_discriminator_explicit": self.is_discriminator_explicit,
            "uses_custom_converter": self.uses_custom_converter,
            "is_one_of": self.is_one_of,
        }


class UnionDecodeError(DescriptorError, ValueError):
    """Raised when a payload matches none of the variants of a union."""

    def __init__(self, errors: list[tuple[str, Exception]]):
        details = "; ".join(f"{name}: {error}" for name, error in errors)
        super().__init__(f"Payload does not match any union variant ({details})")
        self.errors = errors


def decode_union(payload: Any, decoders: Sequence[tuple[str, Callable[[Any], T]]]) -> tuple[str, T]:
    """
    Decode a payload by trying each variant in declaration order.

    This is the strategy consumers use for unions with uses_custom_converter.

    Args:
        payload: The raw payload
        decoders: (variant name, decoder) pairs in declaration order; a decoder
            raises on structural mismatch

    Returns:
        Tuple of (name of the first variant that decoded, decoded value)

    Raises:
        UnionDecodeError: With every accumulated error if no variant decodes
    """
    errors: list[tuple[str, Exception]] = []
    for name, decoder in decoders:
        try:
            return name, decoder(payload)
        except (ValueError, TypeError, KeyError) as e:
            errors.append((name, e))
    raise UnionDecodeError(errors)


class PolymorphicAnalyzer:
    """Builds PolymorphicConfigs for the union schemas of a document."""

    def __init__(self, document: OpenApiDocument, classifier: SchemaClassifier | None = None):
        self.document = document
        self.classifier = classifier or SchemaClassifier(document)

    def analyze(self, name: str, schema: Mapping[str, Any] | None = None) -> PolymorphicConfig | None:
        """
        Analyze one union schema.

        Args:
            name: Name of the union (base type)
            schema: The schema; looked up in components/schemas when omitted

        Returns:
            PolymorphicConfig, or None when the schema is not a union of
            referenced variants
        """
        if schema is None:
            schema = self.document.schema_by_name(name)
        schema = self.document.deref(schema)

        keyword, members = union_members(schema)
        variant_names = [n for n in (ref_name(m) for m in members) if n is not None]
        if keyword is None or not variant_names:
            return None
        is_one_of = keyword == "oneOf"

        discriminator = schema.get("discriminator")
        if isinstance(discriminator, Mapping) and discriminator.get("propertyName"):
            return self._explicit(name, discriminator, variant_names, is_one_of)

        inferred = self._infer_discriminator(variant_names)
        if inferred is not None:
            property_name, values = inferred
            logger.debug("Inferred discriminator %s for union %s", property_name, name)
            return PolymorphicConfig(
                base_type_name=name,
                discriminator_property=property_name,
                variants=tuple(
                    PolymorphicVariant(variant, value)
                    for variant, value in zip(variant_names, values, strict=True)
                ),
                is_discriminator_explicit=False,
                is_one_of=is_one_of,
            )

        logger.debug("Union %s has no discriminator, falling back to ordered decoding", name)
        return PolymorphicConfig(
            base_type_name=name,
            discriminator_property=None,
            variants=tuple(PolymorphicVariant(variant) for variant in variant_names),
            uses_custom_converter=True,
            is_one_of=is_one_of,
        )

    def analyze_document(self) -> dict[str, PolymorphicConfig]:
        """Analyze every union schema in components/schemas."""
        configs: dict[str, PolymorphicConfig] = {}
        for name, schema in self.document.schemas.items():
            if not isinstance(schema, Mapping) or "$ref" in schema:
                continue
            config = self.analyze(name, schema)
            if config is not None:
                configs[name] = config
        return configs

    @staticmethod
    def variant_base_types(configs: Mapping[str, PolymorphicConfig]) -> dict[str, str]:
        """
        Map each variant to the base type it is nested under.

        Unions decoded by a custom converter have no base type: their variants
        stay independent types.
        """
        bases: dict[str, str] = {}
        for config in configs.values():
            if config.uses_custom_converter:
                continue
            for variant in config.variants:
                bases.setdefault(variant.type_name, config.base_type_name)
        return bases

    def _explicit(
        self,
        name: str,
        discriminator: Mapping[str, Any],
        variant_names: list[str],
        is_one_of: bool,
    ) -> PolymorphicConfig:
        """Build a config from an explicit discriminator object."""
        mapping = discriminator.get("mapping") or {}
        value_by_variant: dict[str, str] = {}
        for value, target in mapping.items():
            target_name = target.rsplit("/", 1)[-1]
            value_by_variant.setdefault(target_name, value)

        return PolymorphicConfig(
            base_type_name=name,
            discriminator_property=discriminator["propertyName"],
            variants=tuple(
                PolymorphicVariant(variant, value_by_variant.get(variant, to_snake_case(variant)))
                for variant in variant_names
            ),
            is_discriminator_explicit=True,
            is_one_of=is_one_of,
        )

    def _infer_discriminator(self, variant_names: list[str]) -> tuple[str, list[str]] | None:
        """
        Find the first property shared by all variants with one distinct literal each.

        Properties are scanned in the declared order of the first variant.

        Returns:
            Tuple of (property name, literal per variant), or None
        """
        variant_properties = []
        for variant in variant_names:
            schema = self.document.schema_by_name(variant)
            properties, _ = self.classifier.merged_properties(self.document.deref(schema))
            variant_properties.append(properties)

        for property_name in variant_properties[0]:
            values = []
            for properties in variant_properties:
                prop_schema = properties.get(property_name)
                literal = self._literal_of(prop_schema) if isinstance(prop_schema, Mapping) else None
                if literal is None:
                    break
                values.append(literal)
            else:
                if len(set(values)) == len(values):
                    return property_name, values
        return None

    def _literal_of(self, schema: Mapping[str, Any]) -> str | None:
        """Return the single string literal a property schema allows, if any."""
        schema = self.document.deref(schema)
        if isinstance(schema.get("const"), str):
            return schema["const"]
        values = schema.get("enum")
        if isinstance(values, list) and len(values) == 1 and isinstance(values[0], str):
            return values[0]
        return None
