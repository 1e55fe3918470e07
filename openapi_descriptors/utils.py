"""
Naming and identifier utilities shared by all extractors.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")

_SEPARATORS = re.compile(r"[\s_\-.:/{}\[\]()+]+")

_INVALID_IDENTIFIER_CHARS = re.compile(r"\W")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots, slashes...) to spaces."""
    return _SEPARATORS.sub(" ", text)


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(text)


def _capitalize_and_join(words: list[str]) -> str:
    """Capitalize each word and join them together."""
    return "".join(word[0].upper() + word[1:] for word in words if word)


def to_pascal_case(text: str) -> str:
    """Convert snake_case, kebab-case, camelCase or path-like text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "actionTemplate" -> "ActionTemplate"
        "x-correlation-id" -> "XCorrelationId"
        "/pets/{petId}" -> "PetsPetId"
        "first 3 rows" -> "First3Rows"
        "2xx" -> "_2Xx"

    Args:
        text: The text to convert

    Returns:
        PascalCase string, prefixed with "_" when it would start with a digit.
        Empty when the text holds no letters or digits.
    """
    if not text:
        return ""
    words = _split_into_words(_normalize_separators(text))
    result = _capitalize_and_join(words)
    if result and result[0].isdigit():
        result = "_" + result
    return result


def to_snake_case(name: str) -> str:
    """Lower-snake-case a type name: "CatDto" -> "cat_dto".

    An underscore is inserted before every uppercase letter after the first
    character, then the whole string is lowercased.
    """
    chars: list[str] = []
    for i, ch in enumerate(name):
        if i > 0 and ch.isupper():
            chars.append("_")
        chars.append(ch)
    return "".join(chars).lower()


def is_valid_identifier(name: str) -> bool:
    return bool(name) and name.isidentifier()


def sanitize_identifier(text: str) -> str:
    """Replace characters that cannot appear in an identifier with underscores."""
    result = _INVALID_IDENTIFIER_CHARS.sub("_", text or "")
    if not result:
        return "_"
    if result[0].isdigit():
        result = "_" + result
    return result


def sanitize_schema_name(name: str) -> str:
    """Schema names may contain dots ("Pet.Dto"); type names may not."""
    return name.replace(".", "_")


def unique_name(name: str, taken: set[str]) -> str:
    """Return name, or name with the first free numeric suffix from 2, and mark it taken.

    `taken` holds lowercased names; comparison is case-insensitive.
    """
    candidate = name
    counter = 2
    while candidate.lower() in taken:
        candidate = f"{name}{counter}"
        counter += 1
    taken.add(candidate.lower())
    return candidate


def dedupe_names(names: Iterable[str]) -> list[str]:
    """Make names unique (case-insensitive), keeping order.

    Repeated names get a numeric suffix starting at 2: ["Id", "id"] -> ["Id", "id2"].
    """
    taken: set[str] = set()
    return [unique_name(name, taken) for name in names]
