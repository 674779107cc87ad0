"""In-memory record store, optionally loaded from a directory of JSON exports.

Each ``<collection>.json`` file holds either a JSON array of documents or one
document per line (``mongoexport`` default). Both are parsed as MongoDB
Extended JSON so ``{"$oid": ...}`` and ``{"$date": ...}`` round-trip to
``ObjectId`` and ``datetime``.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from bson import ObjectId, json_util

from uniform_ops.exceptions import RecordStoreUnavailableException

logger = logging.getLogger(__name__)

_JSON_OPTIONS = json_util.JSONOptions(
    json_mode=json_util.JSONMode.RELAXED,
    tz_aware=True,
)


def _matches(document: dict[str, Any], filter: dict[str, Any]) -> bool:
    for key, expected in filter.items():
        actual = document.get(key)
        if isinstance(expected, dict) and "$in" in expected:
            if actual not in expected["$in"]:
                return False
        elif actual != expected:
            return False
    return True


def _set_dotted(document: dict[str, Any], dotted: str, value: Any) -> None:
    parts = dotted.split(".")
    node = document
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


class SnapshotRecordStore:
    """Record store holding every collection in memory."""

    def __init__(self, collections: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._collections: dict[str, list[dict[str, Any]]] = {
            name: [copy.deepcopy(doc) for doc in docs]
            for name, docs in (collections or {}).items()
        }

    @classmethod
    def load(cls, directory: str | Path) -> SnapshotRecordStore:
        """Build a store from every ``*.json`` file in ``directory``."""
        path = Path(directory)
        if not path.is_dir():
            raise RecordStoreUnavailableException(
                f"Snapshot directory '{path}' does not exist"
            )

        collections: dict[str, list[dict[str, Any]]] = {}
        for file in sorted(path.glob("*.json")):
            text = file.read_text(encoding="utf-8").strip()
            if not text:
                collections[file.stem] = []
            elif text.startswith("["):
                collections[file.stem] = json_util.loads(text, json_options=_JSON_OPTIONS)
            else:
                collections[file.stem] = [
                    json_util.loads(line, json_options=_JSON_OPTIONS)
                    for line in text.splitlines()
                    if line.strip()
                ]
            logger.info(
                "Loaded %d documents from %s", len(collections[file.stem]), file.name
            )
        return cls(collections)

    def dump(self, directory: str | Path) -> None:
        """Write every collection back as an Extended JSON array."""
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        for name, docs in self._collections.items():
            (path / f"{name}.json").write_text(
                json_util.dumps(docs, json_options=_JSON_OPTIONS, indent=2),
                encoding="utf-8",
            )

    def documents(self, collection: str) -> list[dict[str, Any]]:
        """Direct (uncopied) access to a collection, for inspection in tests."""
        return self._collections.setdefault(collection, [])

    async def find_all(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._collections.get(collection, [])]

    async def update_one(
        self,
        collection: str,
        filter: dict[str, Any],
        set_fields: dict[str, Any],
    ) -> int:
        for doc in self._collections.get(collection, []):
            if _matches(doc, filter):
                before = copy.deepcopy(doc)
                for dotted, value in set_fields.items():
                    _set_dotted(doc, dotted, copy.deepcopy(value))
                return 0 if doc == before else 1
        return 0

    async def delete_many(self, collection: str, filter: dict[str, Any]) -> int:
        docs = self._collections.get(collection, [])
        kept = [doc for doc in docs if not _matches(doc, filter)]
        deleted = len(docs) - len(kept)
        self._collections[collection] = kept
        return deleted

    async def insert_one(self, collection: str, document: dict[str, Any]) -> Any:
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        self._collections.setdefault(collection, []).append(stored)
        return stored["_id"]

    async def count(self, collection: str) -> int:
        return len(self._collections.get(collection, []))
