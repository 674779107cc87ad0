"""Celery application configuration for scheduled uniform-ops audits."""

from celery import Celery
from celery.schedules import crontab

from uniform_ops.config import settings

celery = Celery("uniform_ops")

celery.conf.update(
    broker_url=settings.celery_broker_url,
    result_backend=settings.celery_result_backend,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # --- Queue routing ---
    task_routes={
        "uniform_ops.modules.audit.tasks.*": {"queue": "data-audit"},
        "uniform_ops.modules.migration.tasks.*": {"queue": "data-audit"},
    },
    # --- Reliability settings ---
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=86400,  # 24 hours
    # --- Beat schedule (read-only audits only; repairs are run by an operator) ---
    beat_schedule={
        "audit-status-consistency-nightly": {
            "task": "uniform_ops.modules.audit.tasks.audit_status_consistency",
            "schedule": crontab(hour=settings.audit_schedule_hour, minute=0),
        },
        "audit-relationships-nightly": {
            "task": "uniform_ops.modules.audit.tasks.audit_relationships",
            "schedule": crontab(hour=settings.audit_schedule_hour, minute=15),
        },
        "scan-references-nightly": {
            "task": "uniform_ops.modules.migration.tasks.scan_references",
            "schedule": crontab(hour=settings.audit_schedule_hour, minute=30),
        },
    },
)

celery.autodiscover_tasks([
    "uniform_ops.modules.audit",
    "uniform_ops.modules.migration",
])
