"""
Exceptions raised while building descriptors from an OpenAPI document.
"""

from __future__ import annotations


class DescriptorError(Exception):
    """Base class for every error raised by openapi_descriptors."""

    pass


class InvalidInputError(DescriptorError, ValueError):
    """Raised when the input document is absent or structurally unusable.

    This can happen when:
    - No document is given at all
    - The document is not a mapping
    - `paths` or `components/schemas` is present but not a mapping
    """

    pass


class UnresolvedReferenceError(DescriptorError, LookupError):
    """Raised when a `$ref` cannot be dereferenced inside the document."""

    def __init__(self, ref: str, reason: str = "target not found"):
        super().__init__(f"Cannot resolve reference '{ref}': {reason}")
        self.ref = ref
        self.reason = reason
