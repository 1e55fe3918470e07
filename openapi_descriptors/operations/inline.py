"""
Inline request/response schemas.

Anonymous object schemas used directly in a request body or a response get
a synthesized name and become records of their own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..analyzer.enums import EnumDescriptor
from ..analyzer.schema_extractor import RecordDescriptor, SchemaExtractor
from ..document import OperationContext
from ..schema_ast.nodes import SchemaKind
from .media import REQUEST_CONTEXT, RESPONSE_CONTEXT, inline_type_name, is_inline_object, json_schema_of

logger = logging.getLogger(__name__)


class InlineSchemaExtractor:
    """Extracts records for inline request and response schemas."""

    def __init__(self, schema_extractor: SchemaExtractor):
        self.schema_extractor = schema_extractor
        self.document = schema_extractor.document
        self.classifier = schema_extractor.classifier

    def extract(self, context: OperationContext) -> tuple[list[RecordDescriptor], list[EnumDescriptor]]:
        """
        Extract the inline records of one operation.

        Args:
            context: The operation; operations without operationId have none

        Returns:
            Tuple of (records, nested enums)
        """
        operation_id = context.operation_id
        if not operation_id:
            return [], []

        records: list[RecordDescriptor] = []
        for name, schema in self._candidates(operation_id, context.operation):
            if is_inline_object(schema):
                records.append(self._record(name, schema))
            elif self.classifier.kind_of(schema) == SchemaKind.ARRAY and is_inline_object(schema.get("items")):
                records.append(self._record(f"{name}Item", schema["items"]))

        nested_records, nested_enums = self.schema_extractor.take_nested()
        if records:
            logger.debug("Operation %s has %d inline schemas", operation_id, len(records))
        return records + nested_records, nested_enums

    def _candidates(self, operation_id: str, operation: Mapping[str, Any]) -> list[tuple[str, Mapping[str, Any]]]:
        """(synthesized name, JSON schema) of the request body and every response."""
        candidates = []
        body = operation.get("requestBody")
        if isinstance(body, Mapping):
            schema = json_schema_of(self.document.deref(body).get("content"))
            if schema is not None:
                candidates.append((inline_type_name(operation_id, REQUEST_CONTEXT), schema))

        for status, response in (operation.get("responses") or {}).items():
            if not isinstance(response, Mapping):
                continue
            schema = json_schema_of(self.document.deref(response).get("content"))
            if schema is not None:
                candidates.append((inline_type_name(operation_id, RESPONSE_CONTEXT, str(status)), schema))
        return candidates

    def _record(self, name: str, schema: Mapping[str, Any]) -> RecordDescriptor:
        node = self.classifier.classify(schema, name=name, inline=True)
        return self.schema_extractor.build_record(node, name, is_inline=True)
