"""Record store accessor contract shared by every data-repair run."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RecordStore(Protocol):
    """Loosely-typed document access used by the migration and audit engines.

    Documents are plain ``dict`` objects; no schema is assumed. Filters are
    limited to equality matches and ``{"$in": [...]}`` on top-level fields.
    """

    async def find_all(self, collection: str) -> list[dict[str, Any]]: ...

    async def update_one(
        self,
        collection: str,
        filter: dict[str, Any],
        set_fields: dict[str, Any],
    ) -> int: ...

    async def delete_many(self, collection: str, filter: dict[str, Any]) -> int: ...

    async def insert_one(self, collection: str, document: dict[str, Any]) -> Any: ...

    async def count(self, collection: str) -> int: ...
