"""
Read-only view over an OpenAPI 3.x document.

The document is the plain object graph produced by a JSON/YAML loader
(nested dicts and lists). Nothing in this package mutates it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import InvalidInputError, UnresolvedReferenceError

logger = logging.getLogger(__name__)

# Order in which operations of a path item are visited
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

EXTENSION_PREFIX = "x-"


def extensions_of(node: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return the vendor extensions (x-* keys) of a document node."""
    if not node:
        return {}
    return {k: v for k, v in node.items() if isinstance(k, str) and k.startswith(EXTENSION_PREFIX)}


def ref_name(schema: Mapping[str, Any] | None) -> str | None:
    """Return the target name of a `$ref` node ("#/components/schemas/Pet" -> "Pet")."""
    if not isinstance(schema, Mapping):
        return None
    ref = schema.get("$ref")
    if not isinstance(ref, str):
        return None
    return _unescape(ref.rsplit("/", 1)[-1])


def _unescape(token: str) -> str:
    """Decode a JSON pointer token."""
    return token.replace("~1", "/").replace("~0", "~")


def _section(parent: Mapping[str, Any], key: str, label: str) -> Mapping[str, Any]:
    """Return a mapping section; only an absent or null section counts as empty."""
    section = parent.get(key)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise InvalidInputError(f"'{label}' must be a mapping, got {type(section).__name__}")
    return section


@dataclass(frozen=True)
class OperationContext:
    """One operation together with the path item that owns it."""

    path: str
    method: str
    path_item: Mapping[str, Any]
    operation: Mapping[str, Any]

    @property
    def operation_id(self) -> str | None:
        return self.operation.get("operationId") or None

    @property
    def is_deprecated(self) -> bool:
        return bool(self.operation.get("deprecated", False))

    @property
    def extensions(self) -> dict[str, Any]:
        return extensions_of(self.operation)

    @property
    def path_extensions(self) -> dict[str, Any]:
        return extensions_of(self.path_item)


class OpenApiDocument:
    """Typed accessors and reference resolution over a raw OpenAPI document."""

    def __init__(self, raw: Mapping[str, Any] | None):
        """
        Wrap a parsed document.

        Args:
            raw: The parsed OpenAPI document

        Raises:
            InvalidInputError: If the document is missing or its main sections
                have the wrong shape
        """
        if raw is None:
            raise InvalidInputError("No OpenAPI document given")
        if not isinstance(raw, Mapping):
            raise InvalidInputError(f"OpenAPI document must be a mapping, got {type(raw).__name__}")

        paths = _section(raw, "paths", "paths")
        components = _section(raw, "components", "components")
        schemas = _section(components, "schemas", "components/schemas")

        self.raw = raw
        self._paths: Mapping[str, Any] = paths
        self._components: Mapping[str, Any] = components
        self._schemas: Mapping[str, Any] = schemas

    @property
    def schemas(self) -> Mapping[str, Any]:
        """Named schemas of `components/schemas`, in declaration order."""
        return self._schemas

    @property
    def parameters(self) -> Mapping[str, Any]:
        return self._components.get("parameters") or {}

    @property
    def security_schemes(self) -> Mapping[str, Any]:
        return self._components.get("securitySchemes") or {}

    @property
    def extensions(self) -> dict[str, Any]:
        """Document-level vendor extensions."""
        return extensions_of(self.raw)

    @property
    def security(self) -> list[Any] | None:
        """Document-level security requirements, None when not declared."""
        return self.raw.get("security")

    def iter_paths(self) -> Iterator[tuple[str, Mapping[str, Any]]]:
        for path, path_item in self._paths.items():
            if isinstance(path_item, Mapping):
                yield path, path_item

    def iter_operations(self, include_deprecated: bool = False) -> Iterator[OperationContext]:
        """
        Iterate over all operations in document order.

        Args:
            include_deprecated: Whether deprecated operations are yielded

        Yields:
            OperationContext for each operation
        """
        for path, path_item in self.iter_paths():
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, Mapping):
                    continue
                context = OperationContext(path, method, path_item, operation)
                if context.is_deprecated and not include_deprecated:
                    logger.debug("Skipping deprecated operation %s %s", method.upper(), path)
                    continue
                yield context

    def resolve_ref(self, ref: str) -> tuple[str, Mapping[str, Any]]:
        """
        Resolve a local `$ref` to its target.

        Args:
            ref: A local JSON pointer such as "#/components/schemas/Pet"

        Returns:
            Tuple of (target name, target node)

        Raises:
            UnresolvedReferenceError: If the reference is external or dangling
        """
        if not isinstance(ref, str) or not ref.startswith("#/"):
            raise UnresolvedReferenceError(str(ref), "only local references are supported")

        node: Any = self.raw
        tokens = [_unescape(t) for t in ref[2:].split("/")]
        for token in tokens:
            if isinstance(node, Mapping) and token in node:
                node = node[token]
            elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
                node = node[int(token)]
            else:
                raise UnresolvedReferenceError(ref)
        if not isinstance(node, Mapping):
            raise UnresolvedReferenceError(ref, "target is not an object")
        return tokens[-1], node

    def deref(self, schema: Mapping[str, Any]) -> Mapping[str, Any]:
        """Follow `$ref` chains until a concrete node is reached."""
        seen: set[str] = set()
        while isinstance(schema, Mapping) and "$ref" in schema:
            ref = schema["$ref"]
            if ref in seen:
                raise UnresolvedReferenceError(ref, "circular reference")
            seen.add(ref)
            _, schema = self.resolve_ref(ref)
        return schema

    def schema_by_name(self, name: str) -> Mapping[str, Any]:
        """Look up a named component schema."""
        schema = self._schemas.get(name)
        if not isinstance(schema, Mapping):
            raise UnresolvedReferenceError(f"#/components/schemas/{name}")
        return schema
