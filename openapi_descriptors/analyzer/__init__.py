from .enums import EnumDescriptor, EnumMember, build_enum
from .polymorphic import (
    PolymorphicAnalyzer,
    PolymorphicConfig,
    PolymorphicVariant,
    UnionDecodeError,
    decode_union,
)
from .schema_extractor import (
    ArrayDescriptor,
    PolymorphicDescriptor,
    PropertyDescriptor,
    RecordDescriptor,
    SchemaExtraction,
    SchemaExtractor,
)
from .tuples import TupleDescriptor, TupleElement, build_tuple
from .type_resolver import ConflictRegistry, TypeReference, TypeResolver

__all__ = [
    "EnumDescriptor",
    "EnumMember",
    "build_enum",
    "PolymorphicAnalyzer",
    "PolymorphicConfig",
    "PolymorphicVariant",
    "UnionDecodeError",
    "decode_union",
    "ArrayDescriptor",
    "PolymorphicDescriptor",
    "PropertyDescriptor",
    "RecordDescriptor",
    "SchemaExtraction",
    "SchemaExtractor",
    "TupleDescriptor",
    "TupleElement",
    "build_tuple",
    "ConflictRegistry",
    "TypeReference",
    "TypeResolver",
]
