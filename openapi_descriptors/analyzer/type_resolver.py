"""
Type resolution and name-conflict handling.

Maps schema references to canonical, conflict-free type names. Names are
registered on first sight and the same canonical name is returned for the
rest of the run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..document import OpenApiDocument
from ..errors import UnresolvedReferenceError
from ..schema_ast.classifier import is_nullable, json_type_of
from ..utils import sanitize_schema_name

logger = logging.getLogger(__name__)

# Type names commonly provided by target runtimes; a schema with one of
# these names must be referenced through its fully-qualified name.
RESERVED_TYPE_NAMES = frozenset(
    {
        "Task",
        "Action",
        "Func",
        "Type",
        "Exception",
        "Object",
        "String",
        "Guid",
        "DateTime",
        "TimeSpan",
        "Uri",
        "Version",
        "File",
        "Directory",
        "Path",
        "Stream",
        "Thread",
        "Timer",
        "Environment",
        "Console",
        "Math",
        "Random",
        "Array",
        "Attribute",
        "Buffer",
        "Convert",
        "Delegate",
        "Enum",
        "GC",
        "Monitor",
        "Mutex",
        "EventArgs",
    }
)

# JSON types whose values are not references in the target model
VALUE_TYPES = frozenset({"integer", "number", "boolean"})


@dataclass(frozen=True)
class TypeReference:
    """A resolved, conflict-free type reference."""

    name: str
    is_nullable: bool = False
    is_reference_type: bool = True

    # Element type for arrays, value type for dictionaries
    element: TypeReference | None = None
    is_array: bool = False
    is_dict: bool = False

    # Whether name designates a component schema (as opposed to a JSON type)
    is_schema: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "is_nullable": self.is_nullable,
            "is_reference_type": self.is_reference_type,
        }
        if self.is_array:
            d["is_array"] = True
        if self.is_dict:
            d["is_dict"] = True
        if self.element is not None:
            d["element"] = self.element.to_dict()
        return d


class ConflictRegistry:
    """Raw schema name -> canonical name, for one generation run."""

    def __init__(
        self,
        project_name: str = "Api",
        namespace_segments: Iterable[str] = (),
        schema_names: Iterable[str] = (),
    ):
        """
        Initialize the registry.

        Args:
            project_name: Root namespace used to qualify conflicting names
            namespace_segments: Namespace segments of the project; schema
                names equal to one of them are ambiguous as well
            schema_names: All schema names of the document (only used to
                precompute which ones conflict)
        """
        self.project_name = project_name
        self.namespace_segments = set(namespace_segments)
        self.namespace_segments.update(
            segment for segment in project_name.split(".") if segment
        )
        self._canonical: dict[str, str] = {}
        self._conflicts = {
            sanitize_schema_name(name)
            for name in schema_names
            if self._is_reserved(sanitize_schema_name(name))
        }

    def _is_reserved(self, name: str) -> bool:
        return name in RESERVED_TYPE_NAMES or name in self.namespace_segments

    def has_conflict(self, name: str) -> bool:
        return sanitize_schema_name(name) in self._conflicts or self._is_reserved(
            sanitize_schema_name(name)
        )

    def canonical_name(self, raw_name: str, context: str | None = None) -> str:
        """
        Return the canonical name of a raw schema name.

        The first call registers the name; later calls return the registered
        value whatever their context.

        Args:
            raw_name: Schema name as written in the document
            context: Namespace segment of the call site (e.g. a path group),
                used only when the name conflicts

        Returns:
            Canonical type name
        """
        existing = self._canonical.get(raw_name)
        if existing is not None:
            return existing

        name = sanitize_schema_name(raw_name)
        if self.has_conflict(name):
            self._conflicts.add(name)
            qualifier = f"{self.project_name}.Generated"
            if context:
                qualifier = f"{qualifier}.{context}"
            canonical = f"{qualifier}.Models.{name}"
            logger.debug("Schema name %s conflicts, using %s", raw_name, canonical)
        else:
            canonical = name

        self._canonical[raw_name] = canonical
        return canonical

    @property
    def conflicts(self) -> list[str]:
        return sorted(self._conflicts)

    def items(self) -> list[tuple[str, str]]:
        return list(self._canonical.items())

    def __len__(self) -> int:
        return len(self._canonical)

    def __contains__(self, raw_name: object) -> bool:
        return raw_name in self._canonical


class TypeResolver:
    """Resolves schema names and schemas to TypeReferences."""

    def __init__(self, document: OpenApiDocument, registry: ConflictRegistry):
        self.document = document
        self.registry = registry

    def resolve(self, raw_name: str, required: bool = True, context: str | None = None) -> TypeReference:
        """
        Resolve a component schema name.

        Args:
            raw_name: Schema name as written in the document
            required: Whether the call site requires a value; nullability is
                derived from it and never stored in the registry
            context: Namespace segment of the call site

        Returns:
            TypeReference to the canonical name

        Raises:
            UnresolvedReferenceError: If no such schema exists
        """
        schema = self.document.schema_by_name(raw_name)
        json_type = json_type_of(schema)
        return TypeReference(
            name=self.registry.canonical_name(raw_name, context),
            is_nullable=not required,
            is_reference_type=json_type not in VALUE_TYPES and "enum" not in schema,
            is_schema=True,
        )

    def resolve_ref(self, ref: str, required: bool = True, context: str | None = None) -> TypeReference:
        """Resolve a `$ref` string ("#/components/schemas/Pet")."""
        prefix = "#/components/schemas/"
        if not ref.startswith(prefix):
            raise UnresolvedReferenceError(ref, "not a component schema reference")
        name, _ = self.document.resolve_ref(ref)
        return self.resolve(name, required, context)

    def resolve_schema(
        self,
        schema: Mapping[str, Any],
        required: bool = True,
        context: str | None = None,
    ) -> TypeReference:
        """
        Resolve any schema (reference, array, dictionary or primitive).

        Args:
            schema: The schema to resolve
            required: Whether the call site requires a value
            context: Namespace segment of the call site

        Returns:
            TypeReference; arrays and dictionaries wrap their element type
        """
        ref = schema.get("$ref") if isinstance(schema, Mapping) else None
        if isinstance(ref, str):
            if ref.startswith("#/components/schemas/"):
                return self.resolve_ref(ref, required, context)
            schema = self.document.deref(schema)

        nullable = not required or is_nullable(schema)
        json_type = json_type_of(schema)

        if json_type == "array" or isinstance(schema.get("prefixItems"), list):
            items = schema.get("items")
            element = (
                self.resolve_schema(items, True, context)
                if isinstance(items, Mapping)
                else TypeReference(name="any", is_reference_type=True)
            )
            return TypeReference(
                name="array",
                is_nullable=nullable,
                is_reference_type=True,
                element=element,
                is_array=True,
            )

        additional = schema.get("additionalProperties")
        if json_type in (None, "object") and not schema.get("properties") and additional not in (None, False):
            value = (
                self.resolve_schema(additional, True, context)
                if isinstance(additional, Mapping)
                else TypeReference(name="any", is_reference_type=True)
            )
            return TypeReference(
                name="dict",
                is_nullable=nullable,
                is_reference_type=True,
                element=value,
                is_dict=True,
            )

        name = json_type or "any"
        fmt = schema.get("format")
        if fmt and json_type in ("string", "integer", "number"):
            name = f"{json_type}:{fmt}"
        return TypeReference(
            name=name,
            is_nullable=nullable,
            is_reference_type=json_type not in VALUE_TYPES,
        )
