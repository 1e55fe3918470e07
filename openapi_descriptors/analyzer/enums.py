"""
Enum descriptors.

Every enum literal gets a member name that is a valid identifier. Values
that cannot be used as-is keep their original text as a wire value, so that
decoding an encoded member gives the member back.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..utils import dedupe_names, is_valid_identifier, to_pascal_case

# Characters that force a wire value
_SPECIAL_CHARS = ("-", ":", "_", " ")

WILDCARD_MEMBER_NAME = "All"


def needs_wire_value(value: str) -> bool:
    """Whether an enum value must be serialized through an explicit wire value.

    True for values containing '-', ':', '_' or a space, for '*', and for
    values starting with a lowercase letter.
    """
    if not value:
        return False
    if any(ch in value for ch in _SPECIAL_CHARS) or value == "*":
        return True
    return value[0].islower()


def member_name_for(value: str) -> str:
    """Identifier for an enum value ("in-progress" -> "InProgress")."""
    if value == "*":
        return WILDCARD_MEMBER_NAME
    if not needs_wire_value(value) and is_valid_identifier(value):
        return value
    return to_pascal_case(value)


@dataclass(frozen=True)
class EnumMember:
    """One enum literal."""

    name: str
    value: str

    # Wire value differs from the member name
    needs_wire_value: bool = False


@dataclass(frozen=True)
class EnumDescriptor:
    """A named string enum."""

    name: str
    members: tuple[EnumMember, ...] = field(default_factory=tuple)
    description: str | None = None
    is_deprecated: bool = False

    @property
    def has_wire_values(self) -> bool:
        return any(m.needs_wire_value for m in self.members)

    def encode(self, member_name: str) -> str:
        """Member name -> value sent on the wire."""
        for member in self.members:
            if member.name == member_name:
                return member.value
        raise KeyError(f"{self.name} has no member {member_name!r}")

    def decode(self, wire_value: str) -> str:
        """Wire value -> member name."""
        for member in self.members:
            if member.value == wire_value:
                return member.name
        raise KeyError(f"{self.name} has no value {wire_value!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "is_deprecated": self.is_deprecated,
            "members": [
                {"name": m.name, "value": m.value, "needs_wire_value": m.needs_wire_value}
                for m in self.members
            ],
        }


def build_enum(name: str, schema: Mapping[str, Any]) -> EnumDescriptor | None:
    """
    Build the descriptor of a string enum schema.

    Args:
        name: Type name of the enum
        schema: The (dereferenced) enum schema

    Returns:
        EnumDescriptor, or None when the schema has no usable values
    """
    values: list[str] = []
    for raw_value in schema.get("enum") or []:
        if raw_value is None:
            continue
        value = str(raw_value)
        if value and value not in values:
            values.append(value)
    if not values:
        return None

    names = []
    for index, value in enumerate(values, start=1):
        names.append(member_name_for(value) or f"Value{index}")
    names = dedupe_names(names)

    members = tuple(
        EnumMember(
            name=member,
            value=value,
            needs_wire_value=needs_wire_value(value) or member != value,
        )
        for member, value in zip(names, values, strict=True)
    )
    return EnumDescriptor(
        name=name,
        members=members,
        description=schema.get("description"),
        is_deprecated=bool(schema.get("deprecated", False)),
    )
