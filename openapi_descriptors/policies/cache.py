"""
Output-cache and hybrid-cache policies (x-cache-* extensions).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..document import OpenApiDocument
from .cascade import (
    ExtensionLevels,
    PolicyCache,
    collect_named_policies,
    parse_alias,
    parse_bool,
    parse_int,
    parse_string,
    parse_string_list,
    resolve_field,
    resolve_union,
)

POLICY = "x-cache-policy"
TYPE = "x-cache-type"
ENABLED = "x-cache-enabled"
EXPIRATION_SECONDS = "x-cache-expiration-seconds"
TAGS = "x-cache-tags"
VARY_BY_QUERY = "x-cache-vary-by-query"
VARY_BY_HEADER = "x-cache-vary-by-header"
VARY_BY_ROUTE = "x-cache-vary-by-route"
MODE = "x-cache-mode"
SLIDING_EXPIRATION_SECONDS = "x-cache-sliding-expiration-seconds"
KEY_PREFIX = "x-cache-key-prefix"

DEFAULT_EXPIRATION_SECONDS = 300


class CacheType(str, Enum):
    OUTPUT = "output"  # HTTP response caching
    HYBRID = "hybrid"  # Two-level (in-memory + distributed) data cache


class CacheMode(str, Enum):
    """Storage used by a hybrid cache."""

    HYBRID = "hybrid"
    IN_MEMORY = "in-memory"
    DISTRIBUTED = "distributed"


_CACHE_TYPES = {
    "output": CacheType.OUTPUT,
    "hybrid": CacheType.HYBRID,
    "hybridcache": CacheType.HYBRID,
}

_CACHE_MODES = {
    "hybrid": CacheMode.HYBRID,
    "in-memory": CacheMode.IN_MEMORY,
    "inmemory": CacheMode.IN_MEMORY,
    "memory": CacheMode.IN_MEMORY,
    "distributed": CacheMode.DISTRIBUTED,
    "l2": CacheMode.DISTRIBUTED,
}


@dataclass(frozen=True)
class CacheConfig:
    """Resolved cache policy."""

    policy_name: str | None
    enabled: bool = True
    cache_type: CacheType = CacheType.OUTPUT
    expiration_seconds: int = DEFAULT_EXPIRATION_SECONDS
    tags: tuple[str, ...] = field(default_factory=tuple)
    vary_by_query: tuple[str, ...] = field(default_factory=tuple)
    vary_by_header: tuple[str, ...] = field(default_factory=tuple)
    vary_by_route: tuple[str, ...] = field(default_factory=tuple)

    # Hybrid cache only
    mode: CacheMode = CacheMode.HYBRID
    sliding_expiration_seconds: int | None = None
    key_prefix: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "enabled": self.enabled,
            "cache_type": self.cache_type.value,
            "expiration_seconds": self.expiration_seconds,
            "tags": list(self.tags),
            "vary_by_query": list(self.vary_by_query),
            "vary_by_header": list(self.vary_by_header),
            "vary_by_route": list(self.vary_by_route),
            "mode": self.mode.value,
            "sliding_expiration_seconds": self.sliding_expiration_seconds,
            "key_prefix": self.key_prefix,
        }


def _string_tuple(value: Any) -> tuple[str, ...] | None:
    items = parse_string_list(value)
    return None if items is None else tuple(items)


def resolve_cache_config(levels: ExtensionLevels) -> CacheConfig | None:
    """
    Resolve the cache policy visible from an operation (or path/document).

    Args:
        levels: Extension maps of the document, path item and operation

    Returns:
        CacheConfig; a disabled config when the operation opts out with
        x-cache-enabled: false; None when no policy name is set anywhere
    """
    if parse_bool(levels.operation.get(ENABLED)) is False:
        return CacheConfig(policy_name=None, enabled=False)

    policy = resolve_field(levels, POLICY, parse=parse_string)
    if policy is None:
        return None

    return CacheConfig(
        policy_name=policy,
        enabled=True,
        cache_type=resolve_field(levels, TYPE, CacheType.OUTPUT, parse_alias(_CACHE_TYPES, CacheType.OUTPUT)),
        expiration_seconds=resolve_field(levels, EXPIRATION_SECONDS, DEFAULT_EXPIRATION_SECONDS, parse_int),
        tags=resolve_union(levels, TAGS),
        vary_by_query=resolve_field(levels, VARY_BY_QUERY, (), _string_tuple),
        vary_by_header=resolve_field(levels, VARY_BY_HEADER, (), _string_tuple),
        vary_by_route=resolve_field(levels, VARY_BY_ROUTE, (), _string_tuple),
        mode=resolve_field(levels, MODE, CacheMode.HYBRID, parse_alias(_CACHE_MODES, CacheMode.HYBRID)),
        sliding_expiration_seconds=resolve_field(levels, SLIDING_EXPIRATION_SECONDS, None, parse_int),
        key_prefix=resolve_field(levels, KEY_PREFIX, None, parse_string),
    )


def collect_cache_policies(
    document: OpenApiDocument,
    cache_type: CacheType | None = None,
    include_deprecated: bool = False,
) -> PolicyCache[CacheConfig]:
    """
    Collect the named cache policies of a document.

    Args:
        document: The document
        cache_type: Keep only policies of this type (all types when None)
        include_deprecated: Whether deprecated operations are visited

    Returns:
        PolicyCache of enabled policies by name
    """

    def resolve(levels: ExtensionLevels) -> CacheConfig | None:
        config = resolve_cache_config(levels)
        if config is None or not config.enabled:
            return None
        if cache_type is not None and config.cache_type != cache_type:
            return None
        return config

    return collect_named_policies(document, POLICY, resolve, include_deprecated)
