"""
Rate-limiting policies (x-ratelimit-* extensions).
"""

from __future__ import annotations

from dataclasses import dataclass
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
    resolve_field,
)

POLICY = "x-ratelimit-policy"
ENABLED = "x-ratelimit-enabled"
PERMIT_LIMIT = "x-ratelimit-permit-limit"
WINDOW_SECONDS = "x-ratelimit-window-seconds"
QUEUE_LIMIT = "x-ratelimit-queue-limit"
ALGORITHM = "x-ratelimit-algorithm"


class RateLimitAlgorithm(str, Enum):
    FIXED = "fixed"
    SLIDING = "sliding"
    TOKEN_BUCKET = "token-bucket"
    CONCURRENCY = "concurrency"


_ALGORITHMS = {
    "fixed": RateLimitAlgorithm.FIXED,
    "sliding": RateLimitAlgorithm.SLIDING,
    "sliding-window": RateLimitAlgorithm.SLIDING,
    "token-bucket": RateLimitAlgorithm.TOKEN_BUCKET,
    "tokenbucket": RateLimitAlgorithm.TOKEN_BUCKET,
    "concurrency": RateLimitAlgorithm.CONCURRENCY,
}


@dataclass(frozen=True)
class RateLimitConfig:
    policy_name: str | None
    enabled: bool = True
    permit_limit: int = 100
    window_seconds: int = 60
    queue_limit: int = 0
    algorithm: RateLimitAlgorithm = RateLimitAlgorithm.FIXED

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "enabled": self.enabled,
            "permit_limit": self.permit_limit,
            "window_seconds": self.window_seconds,
            "queue_limit": self.queue_limit,
            "algorithm": self.algorithm.value,
        }


def resolve_rate_limit_config(levels: ExtensionLevels) -> RateLimitConfig | None:
    """
    Resolve the rate limiter visible from an operation.

    Returns:
        RateLimitConfig; a disabled config when the operation opts out with
        x-ratelimit-enabled: false; None when no policy name is set anywhere
    """
    if parse_bool(levels.operation.get(ENABLED)) is False:
        return RateLimitConfig(policy_name=None, enabled=False)

    policy = resolve_field(levels, POLICY, parse=parse_string)
    if policy is None:
        return None

    return RateLimitConfig(
        policy_name=policy,
        enabled=True,
        permit_limit=resolve_field(levels, PERMIT_LIMIT, 100, parse_int),
        window_seconds=resolve_field(levels, WINDOW_SECONDS, 60, parse_int),
        queue_limit=resolve_field(levels, QUEUE_LIMIT, 0, parse_int),
        algorithm=resolve_field(
            levels, ALGORITHM, RateLimitAlgorithm.FIXED, parse_alias(_ALGORITHMS, RateLimitAlgorithm.FIXED)
        ),
    )


def collect_rate_limit_policies(
    document: OpenApiDocument, include_deprecated: bool = False
) -> PolicyCache[RateLimitConfig]:
    """Collect the named, enabled rate-limit policies of a document."""

    def resolve(levels: ExtensionLevels) -> RateLimitConfig | None:
        config = resolve_rate_limit_config(levels)
        return config if config is not None and config.enabled else None

    return collect_named_policies(document, POLICY, resolve, include_deprecated)
