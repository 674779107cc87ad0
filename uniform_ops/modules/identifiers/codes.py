"""Canonical-code allocation and document labelling."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from uniform_ops.config import settings
from uniform_ops.exceptions import ConfigurationException
from uniform_ops.modules.identifiers.classifier import is_canonical_code


def document_identity(document: Mapping[str, Any], id_field: str = "id") -> str:
    """Label used in reports: the business id when present, else the ``_id``."""
    value = document.get(id_field)
    if value is not None and value != "":
        return str(value)
    internal = document.get("_id")
    return str(internal) if internal is not None else "<no-id>"


class CodeAllocator:
    """Hands out canonical codes above the highest one already in use."""

    def __init__(self, next_value: int, width: int | None = None) -> None:
        self._next = next_value
        self._width = width or settings.canonical_code_length

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[dict[str, Any]],
        id_field: str = "id",
        start: int | None = None,
    ) -> CodeAllocator:
        floor = (start or settings.canonical_code_start) - 1
        existing = [
            int(doc[id_field]) for doc in documents if is_canonical_code(doc.get(id_field))
        ]
        return cls(max([floor, *existing]) + 1)

    def allocate(self) -> str:
        if self._next >= 10 ** self._width:
            raise ConfigurationException(
                f"Canonical code space of width {self._width} is exhausted"
            )
        code = f"{self._next:0{self._width}d}"
        self._next += 1
        return code
