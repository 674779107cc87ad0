"""StatusConsistencyAuditor — read-only legacy vs unified status comparison."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from uniform_ops.config import settings
from uniform_ops.database.store import RecordStore
from uniform_ops.models.enums import ConsistencyBucket
from uniform_ops.modules.audit.constants import STATUS_ENTITIES, StatusEntityConfig
from uniform_ops.modules.audit.schemas import (
    EntityConsistencyReport,
    StatusAuditReport,
    StatusSample,
)
from uniform_ops.modules.identifiers.codes import document_identity

logger = logging.getLogger(__name__)


def has_unified_status(config: StatusEntityConfig, document: Mapping[str, Any]) -> bool:
    """A unified status that is missing or null counts as absent."""
    return document.get(config.unified_field) is not None


def bucket_for(config: StatusEntityConfig, document: Mapping[str, Any]) -> ConsistencyBucket:
    if not has_unified_status(config, document):
        return ConsistencyBucket.NULL
    expected = config.expected_unified(document)
    if expected is not None and document[config.unified_field] == expected:
        return ConsistencyBucket.CONSISTENT
    return ConsistencyBucket.INCONSISTENT


class StatusConsistencyAuditor:
    """Buckets every record of each entity kind; never writes."""

    def __init__(
        self,
        store: RecordStore,
        entities: Sequence[StatusEntityConfig] = STATUS_ENTITIES,
        preview_size: int | None = None,
    ) -> None:
        self.store = store
        self.entities = entities
        self.preview_size = preview_size if preview_size is not None else settings.report_preview_size

    async def audit(self) -> StatusAuditReport:
        report = StatusAuditReport(
            generated_at=datetime.now(UTC), preview_size=self.preview_size
        )
        cache: dict[str, list[dict[str, Any]]] = {}
        for config in self.entities:
            if config.collection not in cache:
                cache[config.collection] = await self.store.find_all(config.collection)
            report.entities.append(self.audit_entity(config, cache[config.collection]))
        return report

    def audit_entity(
        self,
        config: StatusEntityConfig,
        documents: Iterable[Mapping[str, Any]],
    ) -> EntityConsistencyReport:
        result = EntityConsistencyReport(
            entity=config.kind,
            collection=config.collection,
            legacy_field=config.legacy_field,
            unified_field=config.unified_field,
        )
        for document in documents:
            if not config.selector(document):
                continue
            result.total += 1
            bucket = bucket_for(config, document)
            summary = result.bucket(bucket)
            summary.count += 1
            if bucket != ConsistencyBucket.CONSISTENT and len(summary.samples) < self.preview_size:
                summary.samples.append(
                    StatusSample(
                        document_id=document_identity(document, config.id_field),
                        legacy_status=config.legacy_value(document),
                        unified_status=document.get(config.unified_field),
                        expected_status=config.expected_unified(document),
                    )
                )

        logger.info(
            "%s: %d records, %d consistent, %d null, %d inconsistent",
            config.kind.value,
            result.total,
            result.consistent.count,
            result.null.count,
            result.inconsistent.count,
        )
        return result
