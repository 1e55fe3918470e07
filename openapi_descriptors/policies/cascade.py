"""
Three-level resolution of vendor extension values.

Cross-cutting policies may be configured on the document, on a path item or
on an operation. Each field is resolved on its own: the most specific level
that sets it wins, and absent fields fall back to the next level up, then to
a built-in default.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from ..document import OpenApiDocument, OperationContext, extensions_of

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


class PolicyLevel(str, Enum):
    """Scope at which an extension value is declared."""

    DOCUMENT = "document"
    PATH = "path"
    OPERATION = "operation"


@dataclass(frozen=True)
class ExtensionLevels:
    """The extension maps visible from one document, path item or operation."""

    document: Mapping[str, Any] = field(default_factory=dict)
    path: Mapping[str, Any] = field(default_factory=dict)
    operation: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def for_document(cls, document: OpenApiDocument) -> ExtensionLevels:
        return cls(document=document.extensions)

    @classmethod
    def for_path(cls, document: OpenApiDocument, path_item: Mapping[str, Any]) -> ExtensionLevels:
        return cls(document=document.extensions, path=extensions_of(path_item))

    @classmethod
    def for_operation(cls, document: OpenApiDocument, context: OperationContext) -> ExtensionLevels:
        return cls(
            document=document.extensions,
            path=context.path_extensions,
            operation=context.extensions,
        )

    def most_specific_first(self) -> Iterator[tuple[PolicyLevel, Mapping[str, Any]]]:
        yield PolicyLevel.OPERATION, self.operation
        yield PolicyLevel.PATH, self.path
        yield PolicyLevel.DOCUMENT, self.document

    def at(self, level: PolicyLevel) -> Mapping[str, Any]:
        if level == PolicyLevel.OPERATION:
            return self.operation
        if level == PolicyLevel.PATH:
            return self.path
        return self.document


def find_field(
    levels: ExtensionLevels,
    key: str,
    parse: Callable[[Any], T | None] | None = None,
) -> tuple[PolicyLevel, T] | None:
    """
    Find the most specific level that sets a field.

    Args:
        levels: Extension maps to search
        key: Extension key, e.g. "x-cache-expiration-seconds"
        parse: Converter applied to the raw value; a value it rejects
            (returns None for) counts as absent

    Returns:
        Tuple of (level, value), or None when no level sets the field
    """
    for level, extensions in levels.most_specific_first():
        raw = extensions.get(key)
        if raw is None:
            continue
        value = parse(raw) if parse is not None else raw
        if value is None:
            logger.debug("Ignoring invalid value %r for %s at %s level", raw, key, level.value)
            continue
        return level, value
    return None


def resolve_field(
    levels: ExtensionLevels,
    key: str,
    default: Any = None,
    parse: Callable[[Any], Any] | None = None,
) -> Any:
    """Resolve one field: operation, then path, then document, then default."""
    found = find_field(levels, key, parse)
    return default if found is None else found[1]


def resolve_union(levels: ExtensionLevels, key: str) -> tuple[str, ...]:
    """Union of list values across all levels, deduplicated and sorted."""
    merged: set[str] = set()
    for _, extensions in levels.most_specific_first():
        values = parse_string_list(extensions.get(key))
        if values:
            merged.update(values)
    return tuple(sorted(merged))


def parse_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
    return None


def parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def parse_string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_string_list(value: Any) -> list[str] | None:
    """Accept a list of strings or a comma-separated string."""
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, list):
        items = [str(part).strip() for part in value if part is not None]
    else:
        return None
    return [item for item in items if item]


def parse_alias(aliases: Mapping[str, E], default: E) -> Callable[[Any], E | None]:
    """
    Build a parser mapping case-insensitive aliases to enum members.

    Unknown strings map to the default (with a warning); non-strings are
    treated as absent.
    """

    def parse(value: Any) -> E | None:
        text = parse_string(value)
        if text is None:
            return None
        member = aliases.get(text.lower())
        if member is None:
            logger.warning("Unknown value %r, using %s", value, default.value)
            return default
        return member

    return parse


class PolicyCache(Generic[T]):
    """Policy name -> resolved configuration; the first resolution wins."""

    def __init__(self):
        self._policies: dict[str, T] = {}

    def get_or_resolve(self, name: str, resolve: Callable[[], T | None]) -> T | None:
        """Return the cached policy, resolving (and caching) it on first sight."""
        if name in self._policies:
            return self._policies[name]
        config = resolve()
        if config is not None:
            self._policies[name] = config
        return config

    def get(self, name: str) -> T | None:
        return self._policies.get(name)

    def items(self) -> list[tuple[str, T]]:
        return list(self._policies.items())

    def values(self) -> list[T]:
        return list(self._policies.values())

    def __contains__(self, name: object) -> bool:
        return name in self._policies

    def __len__(self) -> int:
        return len(self._policies)

    def __iter__(self) -> Iterator[str]:
        return iter(self._policies)


def collect_named_policies(
    document: OpenApiDocument,
    name_key: str,
    resolve: Callable[[ExtensionLevels], T | None],
    include_deprecated: bool = False,
    cache: PolicyCache[T] | None = None,
) -> PolicyCache[T]:
    """
    Collect every named policy declared in a document.

    The document-level policy comes first, then each path-level policy
    followed by the policies of that path's operations. A level contributes
    only the name it declares itself; the configuration is resolved with the
    levels visible from there.
    The first configuration resolved for a name is kept.

    Args:
        document: The document
        name_key: Extension key holding the policy name
        resolve: Builds the configuration from the visible levels
        include_deprecated: Whether deprecated operations are visited
        cache: Cache to fill; a new one is created when omitted

    Returns:
        The filled PolicyCache
    """
    cache = cache if cache is not None else PolicyCache()

    def visit(levels: ExtensionLevels, own: Mapping[str, Any]) -> None:
        name = parse_string(own.get(name_key))
        if name is not None:
            cache.get_or_resolve(name, lambda: resolve(levels))

    visit(ExtensionLevels.for_document(document), document.extensions)
    operations_by_path: dict[str, list[OperationContext]] = {}
    for context in document.iter_operations(include_deprecated):
        operations_by_path.setdefault(context.path, []).append(context)

    for path, path_item in document.iter_paths():
        visit(ExtensionLevels.for_path(document, path_item), extensions_of(path_item))
        for context in operations_by_path.get(path, []):
            visit(ExtensionLevels.for_operation(document, context), context.extensions)
    return cache
