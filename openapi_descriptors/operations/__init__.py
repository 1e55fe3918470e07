from .handlers import HandlerDescriptor, default_operation_id, extract_handler
from .inline import InlineSchemaExtractor
from .media import file_upload_info, inline_type_name, is_inline_object, request_body_media
from .parameters import (
    BodyKind,
    ParameterDescriptor,
    ParameterExtractor,
    ParameterLocation,
    ParameterSetDescriptor,
    header_property_name,
    merged_parameters,
)

__all__ = [
    "HandlerDescriptor",
    "default_operation_id",
    "extract_handler",
    "InlineSchemaExtractor",
    "file_upload_info",
    "inline_type_name",
    "is_inline_object",
    "request_body_media",
    "BodyKind",
    "ParameterDescriptor",
    "ParameterExtractor",
    "ParameterLocation",
    "ParameterSetDescriptor",
    "header_property_name",
    "merged_parameters",
]
