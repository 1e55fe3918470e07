"""
Request body and response media selection.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..document import OpenApiDocument
from ..schema_ast.classifier import json_type_of
from ..utils import to_pascal_case

JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
OCTET_STREAM_CONTENT_TYPE = "application/octet-stream"
FILE_UPLOAD_CONTENT_TYPES = (MULTIPART_CONTENT_TYPE, OCTET_STREAM_CONTENT_TYPE)

REQUEST_CONTEXT = "Request"
RESPONSE_CONTEXT = "Response"


def file_upload_info(schema: Mapping[str, Any]) -> tuple[bool, bool]:
    """Return (is_file, is_collection) for a `string/binary` schema or an array of them."""
    if json_type_of(schema) == "string" and str(schema.get("format", "")).lower() == "binary":
        return True, False
    if json_type_of(schema) == "array":
        items = schema.get("items")
        if isinstance(items, Mapping) and "$ref" not in items:
            if json_type_of(items) == "string" and str(items.get("format", "")).lower() == "binary":
                return True, True
    return False, False


def json_schema_of(content: Any) -> Mapping[str, Any] | None:
    """Schema of the application/json entry of a content map."""
    if not isinstance(content, Mapping):
        return None
    media = content.get(JSON_CONTENT_TYPE)
    if isinstance(media, Mapping) and isinstance(media.get("schema"), Mapping):
        return media["schema"]
    return None


def request_body_media(
    document: OpenApiDocument, operation: Mapping[str, Any]
) -> tuple[Mapping[str, Any] | None, str | None]:
    """
    Pick the request body schema and its content type.

    JSON content wins, then the first file upload content type.

    Returns:
        Tuple of (schema, content type), (None, None) without a usable body
    """
    body = operation.get("requestBody")
    if not isinstance(body, Mapping):
        return None, None
    content = document.deref(body).get("content") or {}

    schema = json_schema_of(content)
    if schema is not None:
        return schema, JSON_CONTENT_TYPE
    for content_type, media in content.items():
        if content_type.lower() in FILE_UPLOAD_CONTENT_TYPES and isinstance(media, Mapping):
            if isinstance(media.get("schema"), Mapping):
                return media["schema"], content_type
    return None, None


def is_inline_object(schema: Any) -> bool:
    """Whether a schema is an anonymous object with properties."""
    if not isinstance(schema, Mapping) or "$ref" in schema:
        return False
    return schema.get("type") in ("object", None) and bool(schema.get("properties"))


def inline_type_name(operation_id: str, context: str, status_code: str | None = None) -> str:
    """
    Name an inline schema: ("listPets", "Response", "404") -> "ListPetsResponse404".

    The status code is appended only for responses other than 200/default.
    """
    base = to_pascal_case(operation_id)
    if status_code and status_code not in ("200", "default"):
        return f"{base}{context}{status_code}"
    return f"{base}{context}"
