"""
Tuple descriptors (prefixItems).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..utils import dedupe_names, to_pascal_case
from .type_resolver import TypeReference, TypeResolver

ADDITIONAL_ITEMS_FIELD = "AdditionalItems"


@dataclass(frozen=True)
class TupleElement:
    name: str
    type_ref: TypeReference
    description: str | None = None


@dataclass(frozen=True)
class TupleDescriptor:
    """A fixed-position tuple, optionally followed by homogeneous extra items."""

    name: str
    elements: tuple[TupleElement, ...] = field(default_factory=tuple)

    # Array of the trailing items type; None for a strict tuple
    additional_items: TypeReference | None = None

    min_items: int | None = None
    max_items: int | None = None
    description: str | None = None

    @property
    def is_strict(self) -> bool:
        return self.additional_items is None

    @property
    def field_names(self) -> list[str]:
        names = [e.name for e in self.elements]
        if self.additional_items is not None:
            names.append(ADDITIONAL_ITEMS_FIELD)
        return names

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "elements": [
                {"name": e.name, "type": e.type_ref.to_dict(), "description": e.description}
                for e in self.elements
            ],
            "additional_items": self.additional_items.to_dict() if self.additional_items else None,
            "is_strict": self.is_strict,
            "min_items": self.min_items,
            "max_items": self.max_items,
            "description": self.description,
        }


def element_name(item: Mapping[str, Any], position: int) -> str:
    """Name a tuple element from the first word of its description, else Item{n}."""
    description = item.get("description")
    if isinstance(description, str) and description.split():
        name = to_pascal_case(description.split()[0])
        if name:
            return name
    return f"Item{position}"


def build_tuple(name: str, schema: Mapping[str, Any], resolver: TypeResolver) -> TupleDescriptor:
    """
    Build the descriptor of a prefixItems schema.

    Args:
        name: Type name of the tuple
        schema: The (dereferenced) tuple schema
        resolver: Type resolver of the run

    Returns:
        TupleDescriptor; `items: false` or no `items` gives a strict tuple
    """
    items = schema.get("prefixItems") or []
    names = dedupe_names(
        element_name(resolver.document.deref(item), i) for i, item in enumerate(items, start=1)
    )
    elements = tuple(
        TupleElement(
            name=element,
            type_ref=resolver.resolve_schema(item, required=True),
            description=resolver.document.deref(item).get("description"),
        )
        for element, item in zip(names, items, strict=True)
    )

    trailing = schema.get("items")
    additional = None
    if isinstance(trailing, Mapping):
        additional = TypeReference(
            name="array",
            element=resolver.resolve_schema(trailing, required=True),
            is_array=True,
        )
    elif trailing is True:
        additional = TypeReference(name="array", element=TypeReference(name="any"), is_array=True)

    return TupleDescriptor(
        name=name,
        elements=elements,
        additional_items=additional,
        min_items=schema.get("minItems"),
        max_items=schema.get("maxItems"),
        description=schema.get("description"),
    )
