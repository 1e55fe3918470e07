from .cache import CacheConfig, CacheMode, CacheType, collect_cache_policies, resolve_cache_config
from .cascade import (
    ExtensionLevels,
    PolicyCache,
    PolicyLevel,
    collect_named_policies,
    find_field,
    resolve_field,
    resolve_union,
)
from .rate_limit import RateLimitAlgorithm, RateLimitConfig, collect_rate_limit_policies, resolve_rate_limit_config
from .retry import BackoffType, CircuitBreakerConfig, RetryConfig, collect_retry_policies, resolve_retry_config
from .security import (
    AuthorizationConfig,
    SecurityPolicy,
    SecurityRequirement,
    SecuritySchemeDescriptor,
    SecuritySchemeType,
    SecuritySource,
    UnifiedSecurityConfig,
    collect_security_policies,
    effective_requirements,
    extract_security_schemes,
    policy_constant_name,
    policy_name,
    resolve_authorization,
    resolve_security,
)

__all__ = [
    "ExtensionLevels",
    "PolicyCache",
    "PolicyLevel",
    "collect_named_policies",
    "find_field",
    "resolve_field",
    "resolve_union",
    "CacheConfig",
    "CacheMode",
    "CacheType",
    "collect_cache_policies",
    "resolve_cache_config",
    "RetryConfig",
    "BackoffType",
    "CircuitBreakerConfig",
    "collect_retry_policies",
    "resolve_retry_config",
    "RateLimitConfig",
    "RateLimitAlgorithm",
    "collect_rate_limit_policies",
    "resolve_rate_limit_config",
    "AuthorizationConfig",
    "SecurityPolicy",
    "SecurityRequirement",
    "SecuritySchemeDescriptor",
    "SecuritySchemeType",
    "SecuritySource",
    "UnifiedSecurityConfig",
    "collect_security_policies",
    "effective_requirements",
    "extract_security_schemes",
    "policy_constant_name",
    "policy_name",
    "resolve_authorization",
    "resolve_security",
]
