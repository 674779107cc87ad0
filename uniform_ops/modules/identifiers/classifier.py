"""Classify identifier-reference values as canonical codes or legacy references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

from bson import ObjectId

from uniform_ops.config import settings
from uniform_ops.models.enums import ReferenceKind

# ASCII digits only; \d would also accept other Unicode digits
CANONICAL_CODE_PATTERN = re.compile(rf"[0-9]{{{settings.canonical_code_length}}}")

LEGACY_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


@dataclass(frozen=True)
class CanonicalCode:
    code: str

    kind = ReferenceKind.VALID


@dataclass(frozen=True)
class LegacyReference:
    """An internal object reference; ``key`` is its lowercase hex rendering."""

    key: str

    kind = ReferenceKind.LEGACY_REF


@dataclass(frozen=True)
class NotAReference:
    kind = ReferenceKind.NOT_A_REFERENCE


ClassifiedReference = Union[CanonicalCode, LegacyReference, NotAReference]

_NOT_A_REFERENCE = NotAReference()


def is_canonical_code(value: Any) -> bool:
    return isinstance(value, str) and CANONICAL_CODE_PATTERN.fullmatch(value) is not None


def inspect_reference(value: Any) -> ClassifiedReference:
    """Return the tagged variant for one scalar value. Never raises."""
    if isinstance(value, ObjectId):
        return LegacyReference(str(value))

    if isinstance(value, str):
        if CANONICAL_CODE_PATTERN.fullmatch(value):
            return CanonicalCode(value)
        if LEGACY_HEX_PATTERN.fullmatch(value):
            return LegacyReference(value.lower())
        return _NOT_A_REFERENCE

    # Populated sub-document, e.g. {"_id": ObjectId(...), "name": ...}
    if isinstance(value, dict) and "_id" in value:
        inner = value["_id"]
        if isinstance(inner, dict):
            return _NOT_A_REFERENCE
        classified = inspect_reference(inner)
        if isinstance(classified, LegacyReference):
            return classified

    return _NOT_A_REFERENCE


def classify(value: Any) -> ReferenceKind:
    """Return VALID, LEGACY_REF or NOT_A_REFERENCE for ``value``."""
    return inspect_reference(value).kind
