"""
Descriptor generation run.

A DescriptorGenerator owns every mutable structure of one run (conflict
registry, policy caches) and turns a parsed OpenAPI document into a
GenerationResult of immutable descriptors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .analyzer.enums import EnumDescriptor
from .analyzer.schema_extractor import (
    ArrayDescriptor,
    PolymorphicDescriptor,
    RecordDescriptor,
    SchemaExtractor,
)
from .analyzer.tuples import TupleDescriptor
from .analyzer.type_resolver import ConflictRegistry, TypeResolver
from .config import GeneratorConfig, SecurityConfigSource
from .document import OpenApiDocument, OperationContext
from .operations.handlers import HandlerDescriptor, extract_handler
from .operations.inline import InlineSchemaExtractor
from .operations.parameters import ParameterExtractor, ParameterSetDescriptor
from .policies.cache import CacheConfig, collect_cache_policies, resolve_cache_config
from .policies.cascade import ExtensionLevels
from .policies.rate_limit import RateLimitConfig, collect_rate_limit_policies, resolve_rate_limit_config
from .policies.retry import RetryConfig, collect_retry_policies, resolve_retry_config
from .policies.security import (
    SecurityPolicy,
    SecuritySchemeDescriptor,
    UnifiedSecurityConfig,
    collect_security_policies,
    extract_security_schemes,
    resolve_security,
)
from .schema_ast.classifier import SchemaClassifier
from .utils import sanitize_schema_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationPolicies:
    """The policies in effect for one operation."""

    operation_id: str
    cache: CacheConfig | None = None
    retry: RetryConfig | None = None
    rate_limit: RateLimitConfig | None = None
    security: UnifiedSecurityConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "cache": self.cache.to_dict() if self.cache else None,
            "retry": self.retry.to_dict() if self.retry else None,
            "rate_limit": self.rate_limit.to_dict() if self.rate_limit else None,
            "security": self.security.to_dict() if self.security else None,
        }


@dataclass
class GenerationResult:
    """Everything a run produces, ready to be handed to an emitter."""

    models: list[RecordDescriptor] = field(default_factory=list)
    enums: list[EnumDescriptor] = field(default_factory=list)
    tuples: list[TupleDescriptor] = field(default_factory=list)
    arrays: list[ArrayDescriptor] = field(default_factory=list)
    polymorphic: list[PolymorphicDescriptor] = field(default_factory=list)
    inline_records: list[RecordDescriptor] = field(default_factory=list)
    handlers: list[HandlerDescriptor] = field(default_factory=list)
    parameters: list[ParameterSetDescriptor] = field(default_factory=list)
    cache_policies: dict[str, CacheConfig] = field(default_factory=dict)
    retry_policies: dict[str, RetryConfig] = field(default_factory=dict)
    rate_limit_policies: dict[str, RateLimitConfig] = field(default_factory=dict)
    security_policies: list[SecurityPolicy] = field(default_factory=list)
    security_schemes: list[SecuritySchemeDescriptor] = field(default_factory=list)
    operation_policies: dict[str, OperationPolicies] = field(default_factory=dict)

    # Raw schema name -> qualified name, for names clashing with reserved types
    conflicts: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to JSON-serializable data."""
        return {
            "models": [m.to_dict() for m in self.models],
            "enums": [e.to_dict() for e in self.enums],
            "tuples": [t.to_dict() for t in self.tuples],
            "arrays": [a.to_dict() for a in self.arrays],
            "polymorphic": [p.to_dict() for p in self.polymorphic],
            "inline_records": [r.to_dict() for r in self.inline_records],
            "handlers": [h.to_dict() for h in self.handlers],
            "parameters": [p.to_dict() for p in self.parameters],
            "cache_policies": {k: v.to_dict() for k, v in self.cache_policies.items()},
            "retry_policies": {k: v.to_dict() for k, v in self.retry_policies.items()},
            "rate_limit_policies": {k: v.to_dict() for k, v in self.rate_limit_policies.items()},
            "security_policies": [p.to_dict() for p in self.security_policies],
            "security_schemes": [s.to_dict() for s in self.security_schemes],
            "operation_policies": {k: v.to_dict() for k, v in self.operation_policies.items()},
            "conflicts": dict(self.conflicts),
        }


class DescriptorGenerator:
    """Generates descriptors for one OpenAPI document."""

    def __init__(self, document: Mapping[str, Any] | None, config: GeneratorConfig | None = None):
        """
        Initialize the generator.

        Args:
            document: The parsed OpenAPI document
            config: Generation options, defaults when omitted

        Raises:
            InvalidInputError: If the document is missing or malformed
        """
        self.config = config or GeneratorConfig()
        self.document = OpenApiDocument(document)
        self.registry = ConflictRegistry(
            project_name=self.config.project_name,
            namespace_segments=self.config.namespace_segments,
            schema_names=self.document.schemas.keys(),
        )
        self.resolver = TypeResolver(self.document, self.registry)
        self.classifier = SchemaClassifier(self.document)
        self.schema_extractor = SchemaExtractor(
            self.document,
            self.resolver,
            self.classifier,
            include_deprecated=self.config.include_deprecated,
        )

    def generate(self) -> GenerationResult:
        """
        Run the generation.

        Returns:
            GenerationResult

        Raises:
            UnresolvedReferenceError: If a local reference cannot be resolved
        """
        result = GenerationResult()

        extraction = self.schema_extractor.extract()
        result.models = extraction.records
        result.enums = extraction.enums
        result.tuples = extraction.tuples
        result.arrays = extraction.arrays
        result.polymorphic = extraction.polymorphic

        self._extract_operations(result)
        self._collect_policies(result)

        result.conflicts = {
            raw: canonical
            for raw, canonical in self.registry.items()
            if canonical != sanitize_schema_name(raw)
        }

        logger.info(
            "Generated %d models, %d enums, %d tuples, %d unions, %d handlers, %d parameter sets",
            len(result.models),
            len(result.enums),
            len(result.tuples),
            len(result.polymorphic),
            len(result.handlers),
            len(result.parameters),
        )
        return result

    def _extract_operations(self, result: GenerationResult) -> None:
        """Fill handlers, parameter sets, inline records and per-operation policies."""
        parameter_extractor = ParameterExtractor(self.document, self.resolver)
        inline_extractor = InlineSchemaExtractor(self.schema_extractor)
        known_enums = {e.name for e in result.enums}

        for context in self.document.iter_operations(self.config.include_deprecated):
            handler = extract_handler(self.document, context)
            result.handlers.append(handler)

            parameters = parameter_extractor.extract(context)
            if parameters is not None:
                result.parameters.append(parameters)

            records, enums = inline_extractor.extract(context)
            result.inline_records.extend(records)
            for enum in enums:
                if enum.name not in known_enums:
                    known_enums.add(enum.name)
                    result.enums.append(enum)

            result.operation_policies[handler.operation_id] = self._operation_policies(
                handler.operation_id, context
            )

    def _operation_policies(self, operation_id: str, context: OperationContext) -> OperationPolicies:
        toggles = self.config.policies
        levels = ExtensionLevels.for_operation(self.document, context)
        security = None
        if toggles.enable_security and self.config.security.source != SecurityConfigSource.NONE:
            security = resolve_security(self.document, context, self.config.security.source)
        return OperationPolicies(
            operation_id=operation_id,
            cache=resolve_cache_config(levels) if toggles.enable_cache else None,
            retry=resolve_retry_config(levels) if toggles.enable_retry else None,
            rate_limit=resolve_rate_limit_config(levels) if toggles.enable_rate_limit else None,
            security=security,
        )

    def _collect_policies(self, result: GenerationResult) -> None:
        """Fill the named policy tables."""
        toggles = self.config.policies
        include_deprecated = self.config.include_deprecated

        if toggles.enable_cache:
            policies = collect_cache_policies(self.document, include_deprecated=include_deprecated)
            result.cache_policies = dict(policies.items())
        if toggles.enable_retry:
            result.retry_policies = dict(collect_retry_policies(self.document, include_deprecated).items())
        if toggles.enable_rate_limit:
            result.rate_limit_policies = dict(
                collect_rate_limit_policies(self.document, include_deprecated).items()
            )
        if toggles.enable_security and self.config.security.source != SecurityConfigSource.NONE:
            result.security_schemes = extract_security_schemes(self.document)
            if self.config.security.source != SecurityConfigSource.EXTENSIONS:
                result.security_policies = collect_security_policies(self.document, include_deprecated)
