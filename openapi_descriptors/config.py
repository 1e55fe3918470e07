"""
Configuration for a descriptor generation run.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum

from .errors import InvalidInputError


class SecurityConfigSource(str, Enum):
    """Where authentication/authorization settings are read from."""

    NONE = "none"
    EXTENSIONS = "extensions"  # x-authentication-* / x-authorize-roles only
    SCHEMES = "schemes"  # OpenAPI securitySchemes + security requirements only
    BOTH = "both"


@dataclass
class PolicyToggles:
    """Switches for the cross-cutting policy families."""

    enable_cache: bool = True
    enable_retry: bool = True
    enable_rate_limit: bool = True
    enable_security: bool = True


@dataclass
class SecurityOptions:
    """Configuration for security descriptor extraction."""

    source: SecurityConfigSource = SecurityConfigSource.BOTH


@dataclass
class GeneratorConfig:
    """Configuration options for descriptor generation."""

    # Root namespace, used to qualify schema names that clash with reserved types
    project_name: str = "Api"

    # Extra namespace segments of the project (e.g. resource groups)
    namespace_segments: list[str] = field(default_factory=list)

    # Whether deprecated schemas and operations are extracted
    include_deprecated: bool = False

    policies: PolicyToggles = field(default_factory=PolicyToggles)

    security: SecurityOptions = field(default_factory=SecurityOptions)

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """
        Create a config from a dictionary.

        Unknown keys are ignored.

        Raises:
            InvalidInputError: If the config is not a mapping or the security
                source is not a known value
        """
        if not isinstance(d, dict):
            raise InvalidInputError(f"Config must be a mapping, got {type(d).__name__}")
        config = GeneratorConfig()
        for k, v in d.items():
            if k == "policies" and isinstance(v, dict):
                known = {f.name for f in fields(PolicyToggles)}
                config.policies = PolicyToggles(**{name: value for name, value in v.items() if name in known})
            elif k == "security" and isinstance(v, dict):
                source = v.get("source", SecurityConfigSource.BOTH)
                try:
                    source = SecurityConfigSource(source)
                except ValueError as e:
                    choices = ", ".join(s.value for s in SecurityConfigSource)
                    raise InvalidInputError(f"Unknown security source {source!r}, expected one of: {choices}") from e
                config.security = SecurityOptions(source=source)
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "project_name": self.project_name,
            "namespace_segments": self.namespace_segments,
            "include_deprecated": self.include_deprecated,
            "policies": {
                "enable_cache": self.policies.enable_cache,
                "enable_retry": self.policies.enable_retry,
                "enable_rate_limit": self.policies.enable_rate_limit,
                "enable_security": self.policies.enable_security,
            },
            "security": {
                "source": self.security.source.value,
            },
        }
