"""
Authentication and authorization descriptors.

Two sources are understood: the x-authentication-required /
x-authentication-schemes / x-authorize-roles extensions, and the standard
OpenAPI securitySchemes with their security requirements. Scope-based
authorization policies are derived from the requirements.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..config import SecurityConfigSource
from ..document import OpenApiDocument, OperationContext
from ..utils import to_pascal_case
from .cascade import ExtensionLevels, parse_bool, parse_string_list

logger = logging.getLogger(__name__)

AUTHENTICATION_REQUIRED = "x-authentication-required"
AUTHENTICATION_SCHEMES = "x-authentication-schemes"
AUTHORIZE_ROLES = "x-authorize-roles"


class SecuritySchemeType(str, Enum):
    HTTP = "http"
    API_KEY = "apiKey"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"


class ApiKeyLocation(str, Enum):
    HEADER = "header"
    QUERY = "query"
    COOKIE = "cookie"


class SecuritySource(str, Enum):
    """Where the security of one operation was declared."""

    NONE = "none"
    EXTENSIONS = "extensions"
    SECURITY_SCHEMES = "schemes"
    BOTH = "both"


@dataclass(frozen=True)
class OAuthFlow:
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None
    scopes: tuple[tuple[str, str], ...] = field(default_factory=tuple)  # (scope, description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "authorization_url": self.authorization_url,
            "token_url": self.token_url,
            "refresh_url": self.refresh_url,
            "scopes": dict(self.scopes),
        }


@dataclass(frozen=True)
class SecuritySchemeDescriptor:
    """A components/securitySchemes entry."""

    name: str
    scheme_type: SecuritySchemeType
    scheme: str | None = None  # HTTP auth scheme ("bearer", "basic")
    bearer_format: str | None = None
    api_key_name: str | None = None
    api_key_location: ApiKeyLocation | None = None
    flows: tuple[tuple[str, OAuthFlow], ...] = field(default_factory=tuple)  # (flow name, flow)
    open_id_connect_url: str | None = None
    description: str | None = None

    @property
    def is_jwt_bearer(self) -> bool:
        return self.scheme_type == SecuritySchemeType.HTTP and (self.scheme or "").lower() == "bearer"

    def flow(self, name: str) -> OAuthFlow | None:
        return dict(self.flows).get(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.scheme_type.value,
            "scheme": self.scheme,
            "bearer_format": self.bearer_format,
            "api_key_name": self.api_key_name,
            "api_key_location": self.api_key_location.value if self.api_key_location else None,
            "flows": {name: flow.to_dict() for name, flow in self.flows},
            "open_id_connect_url": self.open_id_connect_url,
            "is_jwt_bearer": self.is_jwt_bearer,
            "description": self.description,
        }


@dataclass(frozen=True)
class SecurityRequirement:
    """One scheme entry of a security requirement object."""

    scheme: str
    scopes: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AuthorizationConfig:
    """Security resolved from the x-authentication / x-authorize extensions."""

    required: bool = False
    roles: tuple[str, ...] = field(default_factory=tuple)
    schemes: tuple[str, ...] = field(default_factory=tuple)
    allow_anonymous: bool = False


@dataclass(frozen=True)
class UnifiedSecurityConfig:
    """Effective security of one operation, merged from both sources."""

    source: SecuritySource = SecuritySource.NONE
    authentication_required: bool = False
    allow_anonymous: bool = False
    roles: tuple[str, ...] = field(default_factory=tuple)
    schemes: tuple[str, ...] = field(default_factory=tuple)
    scopes: tuple[str, ...] = field(default_factory=tuple)
    requirements: tuple[SecurityRequirement, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "authentication_required": self.authentication_required,
            "allow_anonymous": self.allow_anonymous,
            "roles": list(self.roles),
            "schemes": list(self.schemes),
            "scopes": list(self.scopes),
            "requirements": [{"scheme": r.scheme, "scopes": list(r.scopes)} for r in self.requirements],
        }


@dataclass(frozen=True)
class SecurityPolicy:
    """A scope-based authorization policy."""

    name: str
    scheme: str
    scopes: tuple[str, ...]

    @property
    def constant_name(self) -> str:
        return policy_constant_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "constant_name": self.constant_name,
            "scheme": self.scheme,
            "scopes": list(self.scopes),
        }


def _string_list(extensions: Mapping[str, Any], key: str) -> tuple[str, ...]:
    return tuple(parse_string_list(extensions.get(key)) or ())


def resolve_authorization(levels: ExtensionLevels) -> AuthorizationConfig | None:
    """
    Resolve the extension-based security of an operation.

    Args:
        levels: Extension maps of the document, path item and operation

    Returns:
        AuthorizationConfig; allow_anonymous when the operation sets
        x-authentication-required: false; None when nothing requires
        authentication
    """
    operation_required = parse_bool(levels.operation.get(AUTHENTICATION_REQUIRED))
    if operation_required is False:
        return AuthorizationConfig(required=False, allow_anonymous=True)

    required = operation_required
    if required is None:
        required = parse_bool(levels.path.get(AUTHENTICATION_REQUIRED))
    if required is None:
        required = parse_bool(levels.document.get(AUTHENTICATION_REQUIRED))

    # Roles and schemes are taken from the operation, else from the path
    roles = _string_list(levels.operation, AUTHORIZE_ROLES) or _string_list(levels.path, AUTHORIZE_ROLES)
    schemes = _string_list(levels.operation, AUTHENTICATION_SCHEMES) or _string_list(
        levels.path, AUTHENTICATION_SCHEMES
    )

    # Roles or schemes imply authentication
    if not required and not roles and not schemes:
        return None
    return AuthorizationConfig(required=True, roles=roles, schemes=schemes)


def effective_requirements(
    document: OpenApiDocument, operation: Mapping[str, Any]
) -> tuple[SecurityRequirement, ...] | None:
    """
    Return the security requirements that apply to an operation.

    Operation-level `security` replaces the document-level one. Each scheme of
    each requirement object yields one entry.

    Returns:
        Requirements; an empty tuple when the operation is explicitly public
        (`security: []`); None when no security is declared at all
    """
    declared = operation.get("security")
    if declared is None:
        declared = document.security
    if declared is None:
        return None

    requirements = []
    for requirement in declared:
        if not isinstance(requirement, Mapping):
            continue
        for scheme, scopes in requirement.items():
            requirements.append(SecurityRequirement(scheme=scheme, scopes=tuple(scopes or ())))
    return tuple(requirements)


def resolve_security(
    document: OpenApiDocument,
    context: OperationContext,
    source: SecurityConfigSource = SecurityConfigSource.BOTH,
) -> UnifiedSecurityConfig:
    """
    Merge extension-based and standard security for one operation.

    When both are present the extensions decide authentication and roles,
    and the standard requirements contribute the scopes.

    Args:
        document: The document
        context: The operation
        source: Which sources are considered

    Returns:
        UnifiedSecurityConfig
    """
    use_extensions = source in (SecurityConfigSource.EXTENSIONS, SecurityConfigSource.BOTH)
    use_schemes = source in (SecurityConfigSource.SCHEMES, SecurityConfigSource.BOTH)

    authorization = (
        resolve_authorization(ExtensionLevels.for_operation(document, context)) if use_extensions else None
    )
    requirements = effective_requirements(document, context.operation) if use_schemes else None

    if authorization is not None and requirements is not None:
        if authorization.allow_anonymous:
            return UnifiedSecurityConfig(source=SecuritySource.BOTH, allow_anonymous=True)
        return UnifiedSecurityConfig(
            source=SecuritySource.BOTH,
            authentication_required=authorization.required,
            roles=authorization.roles,
            schemes=authorization.schemes,
            scopes=_distinct(scope for r in requirements for scope in r.scopes),
            requirements=requirements,
        )

    if authorization is not None:
        return UnifiedSecurityConfig(
            source=SecuritySource.EXTENSIONS,
            authentication_required=authorization.required,
            allow_anonymous=authorization.allow_anonymous,
            roles=authorization.roles,
            schemes=authorization.schemes,
        )

    if requirements is not None:
        if not requirements:
            return UnifiedSecurityConfig(source=SecuritySource.SECURITY_SCHEMES, allow_anonymous=True)
        return UnifiedSecurityConfig(
            source=SecuritySource.SECURITY_SCHEMES,
            authentication_required=True,
            schemes=_distinct(r.scheme for r in requirements),
            scopes=_distinct(scope for r in requirements for scope in r.scopes),
            requirements=requirements,
        )

    return UnifiedSecurityConfig()


def _distinct(values: Iterable[str]) -> tuple[str, ...]:
    """Deduplicate keeping first occurrence order."""
    return tuple(dict.fromkeys(values))


def extract_security_schemes(document: OpenApiDocument) -> list[SecuritySchemeDescriptor]:
    """Describe every entry of components/securitySchemes."""
    schemes = []
    for name, raw in document.security_schemes.items():
        if not isinstance(raw, Mapping):
            continue
        try:
            scheme_type = SecuritySchemeType(raw.get("type", "http"))
        except ValueError:
            logger.warning("Unknown security scheme type %r for %s, assuming http", raw.get("type"), name)
            scheme_type = SecuritySchemeType.HTTP

        location = None
        if raw.get("in") in ("header", "query", "cookie"):
            location = ApiKeyLocation(raw["in"])

        flows = []
        for flow_name, flow in (raw.get("flows") or {}).items():
            if not isinstance(flow, Mapping):
                continue
            flows.append(
                (
                    flow_name,
                    OAuthFlow(
                        authorization_url=flow.get("authorizationUrl"),
                        token_url=flow.get("tokenUrl"),
                        refresh_url=flow.get("refreshUrl"),
                        scopes=tuple((flow.get("scopes") or {}).items()),
                    ),
                )
            )

        schemes.append(
            SecuritySchemeDescriptor(
                name=name,
                scheme_type=scheme_type,
                scheme=raw.get("scheme"),
                bearer_format=raw.get("bearerFormat"),
                api_key_name=raw.get("name") if scheme_type == SecuritySchemeType.API_KEY else None,
                api_key_location=location,
                flows=tuple(flows),
                open_id_connect_url=raw.get("openIdConnectUrl"),
                description=raw.get("description"),
            )
        )
    return schemes


def policy_name(scheme: str, scopes: list[str] | tuple[str, ...]) -> str:
    """
    Name an authorization policy.

    Examples:
        ("oauth2", []) -> "oauth2"
        ("oauth2", ["read"]) -> "oauth2:read"
        ("oauth2", ["write", "read"]) -> "oauth2:read+write"
    """
    if not scopes:
        return scheme
    if len(scopes) == 1:
        return f"{scheme}:{scopes[0]}"
    return f"{scheme}:{'+'.join(sorted(scopes))}"


def policy_constant_name(name: str) -> str:
    """Identifier for a policy name: "oauth2:read+write" -> "Oauth2ReadAndWrite"."""
    result = []
    scheme, _, scopes = name.partition(":")
    result.append(to_pascal_case(scheme))
    for i, scope in enumerate(s for s in scopes.split("+") if s):
        if i > 0:
            result.append("And")
        result.append(to_pascal_case(scope))
    return "".join(result)


def collect_security_policies(
    document: OpenApiDocument, include_deprecated: bool = False
) -> list[SecurityPolicy]:
    """
    Collect scope-based authorization policies over all operations.

    Scopes are grouped per scheme within each operation. Every group yields a
    combined policy, and a group with several scopes also yields one
    single-scope policy per scope.

    Returns:
        Policies sorted by name
    """
    policies: dict[str, SecurityPolicy] = {}
    for context in document.iter_operations(include_deprecated):
        requirements = effective_requirements(document, context.operation)
        if not requirements:
            continue

        scopes_by_scheme: dict[str, list[str]] = {}
        for requirement in requirements:
            if not requirement.scopes:
                continue
            scopes = scopes_by_scheme.setdefault(requirement.scheme, [])
            for scope in requirement.scopes:
                if scope not in scopes:
                    scopes.append(scope)

        for scheme, scopes in scopes_by_scheme.items():
            sorted_scopes = tuple(sorted(scopes))
            name = policy_name(scheme, sorted_scopes)
            policies.setdefault(name, SecurityPolicy(name, scheme, sorted_scopes))
            if len(scopes) > 1:
                for scope in scopes:
                    single = policy_name(scheme, [scope])
                    policies.setdefault(single, SecurityPolicy(single, scheme, (scope,)))

    return [policies[name] for name in sorted(policies)]
