"""Celery tasks for the nightly, read-only data audits."""

from __future__ import annotations

import asyncio
import logging

from celery_app import celery
from uniform_ops.database.mongo import MongoRecordStore
from uniform_ops.modules.audit.relationships import RelationshipAuditor
from uniform_ops.modules.audit.status_consistency import StatusConsistencyAuditor

logger = logging.getLogger(__name__)


async def _audit_status_async() -> dict:
    store = MongoRecordStore()
    await store.connect()
    try:
        report = await StatusConsistencyAuditor(store).audit()
    finally:
        store.close()
    return {
        entity.entity.value: {
            "total": entity.total,
            "consistent": entity.consistent.count,
            "null": entity.null.count,
            "inconsistent": entity.inconsistent.count,
        }
        for entity in report.entities
    }


async def _audit_relationships_async() -> dict:
    store = MongoRecordStore()
    await store.connect()
    try:
        report = await RelationshipAuditor(store).audit()
    finally:
        store.close()
    return {check.name: check.orphaned_count for check in report.checks}


@celery.task(name="uniform_ops.modules.audit.tasks.audit_status_consistency")
def audit_status_consistency():
    """Bucket legacy vs unified statuses for every entity kind."""
    stats = asyncio.run(_audit_status_async())
    logger.info("audit_status_consistency complete: %s", stats)
    return stats


@celery.task(name="uniform_ops.modules.audit.tasks.audit_relationships")
def audit_relationships():
    """Count orphaned cross-collection links."""
    stats = asyncio.run(_audit_relationships_async())
    logger.info("audit_relationships complete: %s", stats)
    return stats
