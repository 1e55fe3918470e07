"""
Per-operation handler descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..document import OpenApiDocument, OperationContext
from ..utils import to_pascal_case
from .media import file_upload_info, request_body_media


@dataclass(frozen=True)
class HandlerDescriptor:
    """The generated interface shape of one operation."""

    operation_id: str
    handler_name: str
    result_name: str

    # None when the operation has neither parameters nor a request body
    parameter_class_name: str | None

    path: str
    method: str
    summary: str
    has_body: bool = False
    has_file: bool = False
    is_deprecated: bool = False
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_parameters(self) -> bool:
        return self.parameter_class_name is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "handler_name": self.handler_name,
            "result_name": self.result_name,
            "parameter_class_name": self.parameter_class_name,
            "path": self.path,
            "method": self.method,
            "summary": self.summary,
            "has_body": self.has_body,
            "has_file": self.has_file,
            "is_deprecated": self.is_deprecated,
            "tags": list(self.tags),
        }


def default_operation_id(method: str, path: str) -> str:
    """Operation id used when none is declared: ("get", "/pets/{id}") -> "GET_pets_id"."""
    normalized = path.replace("/", "_").replace("{", "").replace("}", "")
    return f"{method.upper()}{normalized}"


def extract_handler(document: OpenApiDocument, context: OperationContext) -> HandlerDescriptor:
    """
    Build the handler descriptor of one operation.

    Args:
        document: The document owning the operation
        context: The operation

    Returns:
        HandlerDescriptor
    """
    operation = context.operation
    operation_id = context.operation_id or default_operation_id(context.method, context.path)
    pascal = to_pascal_case(operation_id)

    has_parameters = bool(operation.get("parameters")) or bool(context.path_item.get("parameters"))
    schema, _ = request_body_media(document, operation)
    has_body = schema is not None
    has_file = has_body and file_upload_info(document.deref(schema))[0]

    return HandlerDescriptor(
        operation_id=operation_id,
        handler_name=f"I{pascal}Handler",
        result_name=f"{pascal}Result",
        parameter_class_name=f"{pascal}Parameters" if has_parameters or has_body else None,
        path=context.path,
        method=context.method,
        summary=operation.get("summary") or f"Handler for operation: {operation_id}",
        has_body=has_body,
        has_file=has_file,
        is_deprecated=context.is_deprecated,
        tags=tuple(operation.get("tags") or ()),
    )
