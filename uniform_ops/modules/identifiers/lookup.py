"""Internal-reference → canonical-code lookups, scoped to one engine run."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from uniform_ops.database.store import RecordStore
from uniform_ops.modules.identifiers.classifier import (
    LegacyReference,
    inspect_reference,
    is_canonical_code,
)

logger = logging.getLogger(__name__)

DEFAULT_CODE_FIELDS: tuple[str, ...] = ("id",)


class ReferenceLookup:
    """Resolved mapping for one target collection."""

    def __init__(
        self,
        collection: str,
        mapping: dict[str, str],
        unmapped: set[str] | None = None,
    ) -> None:
        self.collection = collection
        self._mapping = mapping
        # Target documents that exist but carry no canonical code yet
        self.unmapped = unmapped or set()

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, key: str) -> bool:
        return key in self._mapping

    def resolve(self, key: str) -> str | None:
        return self._mapping.get(key)

    def awaits_code(self, key: str) -> bool:
        """True when the target record exists but has no canonical code."""
        return key in self.unmapped

    @classmethod
    def from_documents(
        cls,
        collection: str,
        documents: Sequence[dict[str, Any]],
        code_fields: Sequence[str] = DEFAULT_CODE_FIELDS,
    ) -> ReferenceLookup:
        """Index documents by stringified ``_id``.

        The canonical code is the first candidate field holding a valid code,
        so a target whose primary ``id`` is itself still legacy can fall back
        to e.g. ``employeeId``.
        """
        mapping: dict[str, str] = {}
        unmapped: set[str] = set()
        for doc in documents:
            internal = inspect_reference(doc.get("_id"))
            if not isinstance(internal, LegacyReference):
                continue
            code = next(
                (doc[f] for f in code_fields if is_canonical_code(doc.get(f))),
                None,
            )
            if code is None:
                unmapped.add(internal.key)
                continue
            mapping[internal.key] = code
        return cls(collection, mapping, unmapped)


class LookupCache:
    """Lookups built lazily, once per target, for the lifetime of this object.

    Pass one cache into each engine run; never share it between runs that
    may observe different data.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._lookups: dict[tuple[str, tuple[str, ...]], ReferenceLookup] = {}

    async def get(
        self,
        collection: str,
        code_fields: Sequence[str] = DEFAULT_CODE_FIELDS,
    ) -> ReferenceLookup:
        cache_key = (collection, tuple(code_fields))
        lookup = self._lookups.get(cache_key)
        if lookup is None:
            documents = await self._store.find_all(collection)
            lookup = ReferenceLookup.from_documents(collection, documents, code_fields)
            self._lookups[cache_key] = lookup
            logger.info(
                "Built lookup for %s: %d references mapped, %d without canonical code",
                collection,
                len(lookup),
                len(lookup.unmapped),
            )
        return lookup

    def lookups(self) -> list[ReferenceLookup]:
        return list(self._lookups.values())

    def clear(self) -> None:
        self._lookups.clear()

    def invalidate(self, collection: str) -> None:
        """Drop every lookup over ``collection`` after its codes changed."""
        for cache_key in [k for k in self._lookups if k[0] == collection]:
            del self._lookups[cache_key]
