"""
Classified schema nodes.

A SchemaNode is the classifier's view of one schema: exactly one kind,
its structural children, and the flags needed downstream. Nullability is a
separate boolean and never folded into the kind.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SchemaKind(str, Enum):
    """Kind of artifact a schema turns into."""

    OBJECT = "object"  # Named record with properties
    ENUM = "enum"  # String enum with a non-empty literal set
    ARRAY = "array"  # Homogeneous list
    TUPLE = "tuple"  # Fixed-position prefixItems
    POLYMORPHIC_UNION = "polymorphic_union"  # oneOf / anyOf composition
    INLINE_RECORD = "inline_record"  # Anonymous object inside a request/response/property
    SCALAR = "scalar"  # string, integer, number, boolean, free-form object


@dataclass
class PropertyNode:
    """A property of an object schema."""

    name: str = ""
    schema: SchemaNode | None = None
    is_required: bool = False
    has_default: bool = False
    default_value: Any = None


@dataclass
class SchemaNode:
    """A classified schema."""

    kind: SchemaKind = SchemaKind.SCALAR

    # Name of the schema (component name, or synthesized name for inline nodes)
    name: str | None = None

    # Set when the node was reached through a $ref
    ref_name: str | None = None

    json_type: str | None = None  # "string", "integer", "object", ...
    format: str | None = None
    description: str | None = None

    properties: list[PropertyNode] = field(default_factory=list)

    # Array element
    element: SchemaNode | None = None

    # Tuple items, plus the trailing items schema (None when the tuple is strict)
    prefix_items: list[SchemaNode] = field(default_factory=list)
    additional_items: SchemaNode | None = None

    enum_values: list[Any] = field(default_factory=list)

    # Union members and the keyword that declared them
    variants: list[SchemaNode] = field(default_factory=list)
    union_keyword: str | None = None

    # Explicit discriminator.propertyName
    discriminator_hint: str | None = None

    is_deprecated: bool = False
    is_nullable: bool = False

    # Whether children were classified (False for nodes reached through a $ref
    # from inside another schema)
    is_expanded: bool = True

    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_reference(self) -> bool:
        return self.ref_name is not None

    @property
    def type_name(self) -> str | None:
        """Name under which this node is emitted (reference target wins)."""
        return self.ref_name or self.name

    def get_property(self, name: str) -> PropertyNode | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None
