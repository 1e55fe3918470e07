import json
from pathlib import Path

import pytest

from openapi_descriptors.document import OpenApiDocument
from openapi_descriptors.policies import (
    BackoffType,
    CacheMode,
    CacheType,
    CircuitBreakerConfig,
    ExtensionLevels,
    PolicyCache,
    PolicyLevel,
    RateLimitAlgorithm,
    collect_cache_policies,
    collect_rate_limit_policies,
    collect_retry_policies,
    find_field,
    resolve_cache_config,
    resolve_field,
    resolve_rate_limit_config,
    resolve_retry_config,
    resolve_union,
)
from openapi_descriptors.policies.cascade import parse_bool, parse_int, parse_string_list

TEST_DATA = Path(__file__).parent / "test_data"


@pytest.fixture
def petstore():
    with open(TEST_DATA / "petstore.json") as f:
        return OpenApiDocument(json.load(f))


class TestCascade:
    def test_most_specific_level_wins_per_field(self):
        levels = ExtensionLevels(
            document={"x-cache-policy": "p", "x-cache-expiration-seconds": 300},
            path={"x-cache-expiration-seconds": 60},
            operation={"x-cache-tags": ["hot"]},
        )
        config = resolve_cache_config(levels)
        assert config.policy_name == "p"
        assert config.expiration_seconds == 60
        assert config.tags == ("hot",)

    def test_find_field_reports_level(self):
        levels = ExtensionLevels(document={"k": 1}, path={"k": 2})
        assert find_field(levels, "k") == (PolicyLevel.PATH, 2)
        assert find_field(levels, "missing") is None
        assert resolve_field(levels, "missing", default=7) == 7

    def test_invalid_value_falls_through(self):
        levels = ExtensionLevels(path={"n": 60}, operation={"n": "abc"})
        assert resolve_field(levels, "n", 300, parse_int) == 60

    def test_tag_union(self):
        levels = ExtensionLevels(document={"t": ["a", "b"]}, operation={"t": "b,c"})
        assert resolve_union(levels, "t") == ("a", "b", "c")

    def test_parsers(self):
        assert parse_bool("TRUE") is True
        assert parse_bool("no") is None
        assert parse_int("12") == 12
        assert parse_int(True) is None
        assert parse_string_list(" a, b ,,c") == ["a", "b", "c"]
        assert parse_string_list(5) is None

    def test_policy_cache_first_resolution_wins(self):
        cache = PolicyCache()
        assert cache.get_or_resolve("p", lambda: 1) == 1
        assert cache.get_or_resolve("p", lambda: 2) == 1
        assert cache.get_or_resolve("q", lambda: None) is None
        assert list(cache) == ["p"]
        assert "q" not in cache


class TestCachePolicy:
    def test_defaults(self):
        config = resolve_cache_config(ExtensionLevels(operation={"x-cache-policy": "p"}))
        assert config.enabled
        assert config.cache_type == CacheType.OUTPUT
        assert config.expiration_seconds == 300
        assert config.vary_by_query == ()
        assert config.mode == CacheMode.HYBRID
        assert config.sliding_expiration_seconds is None

    def test_no_policy(self):
        assert resolve_cache_config(ExtensionLevels(document={"x-cache-expiration-seconds": 10})) is None

    def test_operation_opt_out(self):
        levels = ExtensionLevels(document={"x-cache-policy": "p"}, operation={"x-cache-enabled": False})
        config = resolve_cache_config(levels)
        assert not config.enabled
        assert config.policy_name is None

    def test_aliases(self):
        levels = ExtensionLevels(
            operation={
                "x-cache-policy": "p",
                "x-cache-type": "HybridCache",
                "x-cache-mode": "memory",
                "x-cache-vary-by-query": "page,size",
            }
        )
        config = resolve_cache_config(levels)
        assert config.cache_type == CacheType.HYBRID
        assert config.mode == CacheMode.IN_MEMORY
        assert config.vary_by_query == ("page", "size")

    def test_unknown_alias_uses_default(self):
        levels = ExtensionLevels(operation={"x-cache-policy": "p", "x-cache-mode": "bogus"})
        assert resolve_cache_config(levels).mode == CacheMode.HYBRID

    def test_collect(self, petstore):
        policies = collect_cache_policies(petstore)
        assert list(policies) == ["default-cache"]
        config = policies.get("default-cache")
        assert config.expiration_seconds == 300
        assert config.tags == ("a", "b")

    def test_collect_filters_by_type(self, petstore):
        assert len(collect_cache_policies(petstore, cache_type=CacheType.HYBRID)) == 0

    def test_collect_keeps_first_definition(self):
        document = OpenApiDocument(
            {
                "paths": {
                    "/a": {
                        "x-cache-policy": "p",
                        "x-cache-expiration-seconds": 60,
                        "get": {"x-cache-policy": "p", "x-cache-expiration-seconds": 10},
                    },
                    "/b": {"get": {"x-cache-policy": "q", "x-cache-expiration-seconds": 5}},
                }
            }
        )
        policies = collect_cache_policies(document)
        assert list(policies) == ["p", "q"]
        assert policies.get("p").expiration_seconds == 60
        assert policies.get("q").expiration_seconds == 5


class TestRetryPolicy:
    def test_defaults(self):
        config = resolve_retry_config(ExtensionLevels(operation={"x-retry-policy": "r"}))
        assert config.max_attempts == 3
        assert config.delay_seconds == 1.0
        assert config.backoff == BackoffType.EXPONENTIAL
        assert config.use_jitter
        assert config.timeout_seconds is None
        assert not config.has_circuit_breaker
        assert config.handle_429

    def test_circuit_breaker(self):
        levels = ExtensionLevels(
            document={"x-retry-policy": "r", "x-retry-circuit-breaker": True},
            operation={"x-retry-backoff": "fixed", "x-retry-cb-minimum-throughput": 20},
        )
        config = resolve_retry_config(levels)
        assert config.backoff == BackoffType.CONSTANT
        assert config.circuit_breaker == CircuitBreakerConfig(minimum_throughput=20)

    def test_disabled_keeps_timeout(self):
        levels = ExtensionLevels(
            document={"x-retry-policy": "r", "x-retry-timeout-seconds": 30},
            operation={"x-retry-enabled": False},
        )
        config = resolve_retry_config(levels)
        assert not config.enabled
        assert config.timeout_seconds == 30.0

    def test_collect(self, petstore):
        policies = collect_retry_policies(petstore)
        assert list(policies) == ["standard"]
        assert policies.get("standard").max_attempts == 5


class TestRateLimitPolicy:
    def test_defaults(self):
        config = resolve_rate_limit_config(ExtensionLevels(path={"x-ratelimit-policy": "rl"}))
        assert (config.permit_limit, config.window_seconds, config.queue_limit) == (100, 60, 0)
        assert config.algorithm == RateLimitAlgorithm.FIXED

    def test_algorithm(self):
        levels = ExtensionLevels(operation={"x-ratelimit-policy": "rl", "x-ratelimit-algorithm": "Token-Bucket"})
        assert resolve_rate_limit_config(levels).algorithm == RateLimitAlgorithm.TOKEN_BUCKET

    def test_opt_out(self):
        levels = ExtensionLevels(document={"x-ratelimit-policy": "rl"}, operation={"x-ratelimit-enabled": "false"})
        assert not resolve_rate_limit_config(levels).enabled

    def test_collect(self, petstore):
        policies = collect_rate_limit_policies(petstore)
        assert list(policies) == ["per-user"]
        assert policies.get("per-user").permit_limit == 10
