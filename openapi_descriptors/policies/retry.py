"""
Retry and circuit-breaker policies (x-retry-* extensions).
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
    parse_float,
    parse_int,
    parse_string,
    resolve_field,
)

POLICY = "x-retry-policy"
ENABLED = "x-retry-enabled"
MAX_ATTEMPTS = "x-retry-max-attempts"
DELAY_SECONDS = "x-retry-delay-seconds"
BACKOFF = "x-retry-backoff"
USE_JITTER = "x-retry-use-jitter"
TIMEOUT_SECONDS = "x-retry-timeout-seconds"
CIRCUIT_BREAKER = "x-retry-circuit-breaker"
CB_FAILURE_RATIO = "x-retry-cb-failure-ratio"
CB_SAMPLING_DURATION_SECONDS = "x-retry-cb-sampling-duration-seconds"
CB_MINIMUM_THROUGHPUT = "x-retry-cb-minimum-throughput"
CB_BREAK_DURATION_SECONDS = "x-retry-cb-break-duration-seconds"
HANDLE_429 = "x-retry-handle-429"


class BackoffType(str, Enum):
    CONSTANT = "constant"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


_BACKOFF_TYPES = {
    "constant": BackoffType.CONSTANT,
    "fixed": BackoffType.CONSTANT,
    "linear": BackoffType.LINEAR,
    "exponential": BackoffType.EXPONENTIAL,
}


@dataclass(frozen=True)
class CircuitBreakerConfig:
    failure_ratio: float = 0.5
    sampling_duration_seconds: float = 30.0
    minimum_throughput: int = 10
    break_duration_seconds: float = 30.0


@dataclass(frozen=True)
class RetryConfig:
    """Resolved resilience pipeline policy."""

    policy_name: str | None
    enabled: bool = True
    max_attempts: int = 3
    delay_seconds: float = 1.0
    backoff: BackoffType = BackoffType.EXPONENTIAL
    use_jitter: bool = True
    timeout_seconds: float | None = None

    # None when the circuit breaker is off
    circuit_breaker: CircuitBreakerConfig | None = None

    # Whether 429 Too Many Requests responses are retried
    handle_429: bool = True

    @property
    def has_circuit_breaker(self) -> bool:
        return self.circuit_breaker is not None

    def to_dict(self) -> dict[str, Any]:
        breaker = None
        if self.circuit_breaker is not None:
            breaker = {
                "failure_ratio": self.circuit_breaker.failure_ratio,
                "sampling_duration_seconds": self.circuit_breaker.sampling_duration_seconds,
                "minimum_throughput": self.circuit_breaker.minimum_throughput,
                "break_duration_seconds": self.circuit_breaker.break_duration_seconds,
            }
        return {
            "policy_name": self.policy_name,
            "enabled": self.enabled,
            "max_attempts": self.max_attempts,
            "delay_seconds": self.delay_seconds,
            "backoff": self.backoff.value,
            "use_jitter": self.use_jitter,
            "timeout_seconds": self.timeout_seconds,
            "circuit_breaker": breaker,
            "handle_429": self.handle_429,
        }


def resolve_retry_config(levels: ExtensionLevels) -> RetryConfig | None:
    """
    Resolve the retry policy visible from an operation (or path/document).

    Args:
        levels: Extension maps of the document, path item and operation

    Returns:
        RetryConfig; a disabled config (keeping the cascaded timeout) when the
        operation opts out with x-retry-enabled: false; None when no policy
        name is set anywhere
    """
    timeout = resolve_field(levels, TIMEOUT_SECONDS, None, parse_float)
    if parse_bool(levels.operation.get(ENABLED)) is False:
        return RetryConfig(policy_name=None, enabled=False, timeout_seconds=timeout)

    policy = resolve_field(levels, POLICY, parse=parse_string)
    if policy is None:
        return None

    breaker = None
    if resolve_field(levels, CIRCUIT_BREAKER, False, parse_bool):
        breaker = CircuitBreakerConfig(
            failure_ratio=resolve_field(levels, CB_FAILURE_RATIO, 0.5, parse_float),
            sampling_duration_seconds=resolve_field(levels, CB_SAMPLING_DURATION_SECONDS, 30.0, parse_float),
            minimum_throughput=resolve_field(levels, CB_MINIMUM_THROUGHPUT, 10, parse_int),
            break_duration_seconds=resolve_field(levels, CB_BREAK_DURATION_SECONDS, 30.0, parse_float),
        )

    return RetryConfig(
        policy_name=policy,
        enabled=True,
        max_attempts=resolve_field(levels, MAX_ATTEMPTS, 3, parse_int),
        delay_seconds=resolve_field(levels, DELAY_SECONDS, 1.0, parse_float),
        backoff=resolve_field(
            levels, BACKOFF, BackoffType.EXPONENTIAL, parse_alias(_BACKOFF_TYPES, BackoffType.EXPONENTIAL)
        ),
        use_jitter=resolve_field(levels, USE_JITTER, True, parse_bool),
        timeout_seconds=timeout,
        circuit_breaker=breaker,
        handle_429=resolve_field(levels, HANDLE_429, True, parse_bool),
    )


def collect_retry_policies(document: OpenApiDocument, include_deprecated: bool = False) -> PolicyCache[RetryConfig]:
    """Collect the named, enabled retry policies of a document."""

    def resolve(levels: ExtensionLevels) -> RetryConfig | None:
        config = resolve_retry_config(levels)
        return config if config is not None and config.enabled else None

    return collect_named_policies(document, POLICY, resolve, include_deprecated)
