"""
Per-operation parameter descriptors.

Path-level and operation-level parameters are merged (operation wins by
name), the request body becomes a single Request or File field, and the
resulting list keeps parameters without a default value first.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from ..analyzer.type_resolver import TypeReference, TypeResolver
from ..document import OpenApiDocument, OperationContext, ref_name
from ..utils import dedupe_names, sanitize_identifier, to_pascal_case
from .media import (
    OCTET_STREAM_CONTENT_TYPE,
    REQUEST_CONTEXT,
    file_upload_info,
    inline_type_name,
    is_inline_object,
    request_body_media,
)

logger = logging.getLogger(__name__)

REQUEST_FIELD = "Request"
FILE_FIELD = "File"


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"


class BodyKind(str, Enum):
    """How a request body is modeled."""

    JSON = "json"
    FILE = "file"  # multipart single file
    FILE_COLLECTION = "file_collection"  # multipart array of files
    STREAM = "stream"  # application/octet-stream payload
    STREAM_COLLECTION = "stream_collection"


@dataclass(frozen=True)
class ParameterDescriptor:
    """One field of an operation's parameter class."""

    name: str
    original_name: str
    location: ParameterLocation
    type_ref: TypeReference
    is_required: bool = False
    has_default: bool = False
    default_value: Any = None
    body_kind: BodyKind | None = None
    content_type: str | None = None
    description: str | None = None

    @property
    def is_file(self) -> bool:
        return self.body_kind is not None and self.body_kind != BodyKind.JSON

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "original_name": self.original_name,
            "location": self.location.value,
            "type": self.type_ref.to_dict(),
            "is_required": self.is_required,
            "has_default": self.has_default,
            "default_value": self.default_value,
            "body_kind": self.body_kind.value if self.body_kind else None,
            "content_type": self.content_type,
            "description": self.description,
        }


@dataclass(frozen=True)
class ParameterSetDescriptor:
    """The parameter class of one operation."""

    name: str
    operation_id: str
    parameters: tuple[ParameterDescriptor, ...] = field(default_factory=tuple)

    @property
    def body(self) -> ParameterDescriptor | None:
        for parameter in self.parameters:
            if parameter.location == ParameterLocation.BODY:
                return parameter
        return None

    @property
    def has_body(self) -> bool:
        return self.body is not None

    @property
    def has_file(self) -> bool:
        body = self.body
        return body is not None and body.is_file

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "operation_id": self.operation_id,
            "has_body": self.has_body,
            "has_file": self.has_file,
            "parameters": [p.to_dict() for p in self.parameters],
        }


def header_property_name(name: str) -> str:
    """Property name of a header parameter: "x-correlation-id" -> "CorrelationId"."""
    if name.lower().startswith("x-"):
        name = name[2:]
    return to_pascal_case(name)


def merged_parameters(
    document: OpenApiDocument, context: OperationContext
) -> list[tuple[Mapping[str, Any], str | None]]:
    """
    Merge path-level and operation-level parameters.

    Path-level parameters come first; an operation parameter with the same
    name removes the path-level one and is appended.

    Returns:
        List of (dereferenced parameter, reference id or None)
    """
    merged: list[tuple[Mapping[str, Any], str | None]] = []
    for raw in list(context.path_item.get("parameters") or []):
        merged.append((document.deref(raw), ref_name(raw)))

    for raw in context.operation.get("parameters") or []:
        parameter = document.deref(raw)
        name = parameter.get("name")
        if name:
            merged = [(p, r) for p, r in merged if p.get("name") != name]
        merged.append((parameter, ref_name(raw)))
    return merged


class ParameterExtractor:
    """Builds ParameterSetDescriptors for operations."""

    def __init__(self, document: OpenApiDocument, resolver: TypeResolver):
        self.document = document
        self.resolver = resolver

    def extract(self, context: OperationContext) -> ParameterSetDescriptor | None:
        """
        Build the parameter class of one operation.

        Args:
            context: The operation

        Returns:
            ParameterSetDescriptor, or None when the operation has no
            operationId or neither parameters nor a request body
        """
        operation_id = context.operation_id
        if not operation_id:
            logger.warning(
                "Operation %s %s has no operationId, skipping parameters", context.method.upper(), context.path
            )
            return None

        parameters: list[ParameterDescriptor] = []
        for parameter, reference_id in merged_parameters(self.document, context):
            descriptor = self._build_parameter(parameter, reference_id)
            if descriptor is not None:
                parameters.append(descriptor)

        body = self._build_body(operation_id, context.operation)
        if body is not None:
            parameters.append(body)

        if not parameters:
            return None

        names = dedupe_names(p.name for p in parameters)
        parameters = [replace(p, name=n) if n != p.name else p for p, n in zip(parameters, names)]

        # Stable: declaration order is kept within each group
        parameters.sort(key=lambda p: p.has_default)
        return ParameterSetDescriptor(
            name=f"{to_pascal_case(operation_id)}Parameters",
            operation_id=operation_id,
            parameters=tuple(parameters),
        )

    def _build_parameter(
        self, parameter: Mapping[str, Any], reference_id: str | None
    ) -> ParameterDescriptor | None:
        """Build the descriptor of a path/query/header/cookie parameter."""
        original_name = parameter.get("name")
        if not original_name:
            return None

        try:
            location = ParameterLocation(parameter.get("in", "query"))
        except ValueError:
            location = ParameterLocation.QUERY

        if location == ParameterLocation.HEADER:
            name = to_pascal_case(reference_id) if reference_id else header_property_name(original_name)
        else:
            name = to_pascal_case(original_name)
        name = name or sanitize_identifier(original_name)

        # Path parameters are always required
        required = bool(parameter.get("required", False)) or location == ParameterLocation.PATH
        schema = parameter.get("schema")
        if isinstance(schema, Mapping):
            type_ref = self.resolver.resolve_schema(schema, required=required)
            resolved_schema = self.document.deref(schema)
        else:
            type_ref = TypeReference(name="string", is_nullable=not required)
            resolved_schema = {}

        has_default, default_value = self._default_for(resolved_schema, required, type_ref)
        return ParameterDescriptor(
            name=name,
            original_name=original_name,
            location=location,
            type_ref=type_ref,
            is_required=required,
            has_default=has_default,
            default_value=default_value,
            description=parameter.get("description"),
        )

    def _build_body(self, operation_id: str, operation: Mapping[str, Any]) -> ParameterDescriptor | None:
        """Model the request body as a single Request or File field (always required)."""
        schema, content_type = request_body_media(self.document, operation)
        if schema is None:
            return None

        is_file, is_collection = file_upload_info(self.document.deref(schema))
        if is_file:
            is_octet_stream = content_type.lower() == OCTET_STREAM_CONTENT_TYPE
            if is_octet_stream:
                kind = BodyKind.STREAM_COLLECTION if is_collection else BodyKind.STREAM
            else:
                kind = BodyKind.FILE_COLLECTION if is_collection else BodyKind.FILE
            element = TypeReference(name=kind.value, is_reference_type=True)
            type_ref = (
                TypeReference(name="array", element=element, is_array=True) if is_collection else element
            )
            name = FILE_FIELD
        else:
            kind = BodyKind.JSON
            type_ref = self._body_type(operation_id, schema)
            name = REQUEST_FIELD

        return ParameterDescriptor(
            name=name,
            original_name=name,
            location=ParameterLocation.BODY,
            type_ref=type_ref,
            is_required=True,
            body_kind=kind,
            content_type=content_type,
            description=self.document.deref(operation["requestBody"]).get("description"),
        )

    def _body_type(self, operation_id: str, schema: Mapping[str, Any]) -> TypeReference:
        """Type of a JSON body; inline objects refer to their synthesized record."""
        request_name = inline_type_name(operation_id, REQUEST_CONTEXT)
        if is_inline_object(schema):
            return TypeReference(name=request_name, is_schema=True)
        items = schema.get("items")
        if "$ref" not in schema and schema.get("type") == "array" and is_inline_object(items):
            element = TypeReference(name=f"{request_name}Item", is_schema=True)
            return TypeReference(name="array", element=element, is_array=True)
        return self.resolver.resolve_schema(schema, required=True)

    @staticmethod
    def _default_for(schema: Mapping[str, Any], required: bool, type_ref: TypeReference) -> tuple[bool, Any]:
        """
        Return (has_default, default value) of a parameter.

        A schema default wins. Required parameters have none; optional ones
        default to None.
        """
        if "default" in schema:
            return True, schema["default"]
        if required and not type_ref.is_nullable:
            return False, None
        return True, None
