"""OpenAPI Descriptors

Turns a parsed OpenAPI 3.x document into immutable code-generation
descriptors: classified schemas, conflict-free type references, polymorphic
union configurations, cascaded cache/retry/rate-limit/security policies and
per-operation handler and parameter shapes.
"""

__version__ = "1.0.0"

from .config import GeneratorConfig, PolicyToggles, SecurityConfigSource, SecurityOptions
from .document import OpenApiDocument, OperationContext
from .errors import DescriptorError, InvalidInputError, UnresolvedReferenceError
from .generator import DescriptorGenerator, GenerationResult, OperationPolicies

__all__ = [
    "DescriptorGenerator",
    "GenerationResult",
    "OperationPolicies",
    "GeneratorConfig",
    "PolicyToggles",
    "SecurityConfigSource",
    "SecurityOptions",
    "OpenApiDocument",
    "OperationContext",
    "DescriptorError",
    "InvalidInputError",
    "UnresolvedReferenceError",
]
