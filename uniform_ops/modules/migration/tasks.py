"""Celery tasks for scheduled, read-only reference scans."""

from __future__ import annotations

import asyncio
import logging

from celery_app import celery
from uniform_ops.database.mongo import MongoRecordStore
from uniform_ops.models.enums import MigrationMode
from uniform_ops.modules.identifiers.lookup import LookupCache
from uniform_ops.modules.migration.constants import MIGRATION_PLANS
from uniform_ops.modules.migration.engine import MigrationEngine

logger = logging.getLogger(__name__)


async def _scan_references_async() -> dict:
    """Dry-run every migration plan and summarise pending work per collection."""
    store = MongoRecordStore()
    await store.connect()
    stats: dict[str, dict[str, int]] = {}
    try:
        engine = MigrationEngine(store, LookupCache(store))
        for plan in MIGRATION_PLANS.values():
            report = await engine.run_plan(plan, MigrationMode.DRY_RUN)
            stats[plan.name] = {
                "scanned": report.scanned,
                "pending": report.resolved,
                "orphaned": report.orphaned,
                "awaiting_code": report.awaiting_code,
                "errors": report.errors,
            }
    finally:
        store.close()
    return stats


@celery.task(name="uniform_ops.modules.migration.tasks.scan_references")
def scan_references():
    """Nightly dry run of all reference migrations."""
    stats = asyncio.run(_scan_references_async())
    logger.info("scan_references complete: %s", stats)
    return stats
