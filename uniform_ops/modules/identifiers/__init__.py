from uniform_ops.modules.identifiers.classifier import (
    CanonicalCode,
    LegacyReference,
    NotAReference,
    classify,
    inspect_reference,
    is_canonical_code,
)
from uniform_ops.modules.identifiers.lookup import LookupCache, ReferenceLookup
from uniform_ops.modules.identifiers.paths import FieldPath, ReferenceSlot

__all__ = [
    "CanonicalCode",
    "FieldPath",
    "LegacyReference",
    "LookupCache",
    "NotAReference",
    "ReferenceLookup",
    "ReferenceSlot",
    "classify",
    "inspect_reference",
    "is_canonical_code",
]
