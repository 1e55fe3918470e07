from .classifier import SchemaClassifier
from .nodes import PropertyNode, SchemaKind, SchemaNode

__all__ = ["SchemaClassifier", "SchemaKind", "SchemaNode", "PropertyNode"]
