"""``uniform-ops`` command line: reference migration, de-duplication and audits.

Every write-capable command is a dry run unless ``--apply`` (or ``--execute``)
is given. Run against a live database by default, or against a directory of
JSON exports with ``--snapshot``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from uniform_ops.config import settings
from uniform_ops.database import MongoRecordStore, RecordStore, SnapshotRecordStore
from uniform_ops.exceptions import AppException, ConfirmationRequiredException
from uniform_ops.models.enums import MigrationMode
from uniform_ops.modules.audit.relationships import (
    RELATIONSHIP_CHECK_BY_NAME,
    RELATIONSHIP_CHECKS,
    RelationshipAuditor,
)
from uniform_ops.modules.audit.status_consistency import StatusConsistencyAuditor
from uniform_ops.modules.audit.status_repair import StatusRepairService
from uniform_ops.modules.identifiers.lookup import LookupCache
from uniform_ops.modules.migration.constants import MIGRATION_PLANS
from uniform_ops.modules.migration.duplicates import DuplicateResolver
from uniform_ops.modules.migration.engine import MigrationEngine
from uniform_ops.modules.migration.migration_log import MigrationLog
from uniform_ops.modules.migration.orphans import OrphanCleaner, select_records
from uniform_ops.modules.order_status.aggregator import roll_up_requisitions
from uniform_ops.reporting import (
    duplicate_summary,
    migration_summary,
    orphan_cleanup_summary,
    relationship_summary,
    render_table,
    status_audit_summary,
    status_repair_summary,
    write_json_report,
)

logger = logging.getLogger(__name__)

CommandResult = tuple[str, Any]


def _mode(args: argparse.Namespace) -> MigrationMode:
    return MigrationMode.APPLY if getattr(args, "apply", False) else MigrationMode.DRY_RUN


def _orphan_confirmation(args: argparse.Namespace) -> bool:
    """Whether orphan deletion may proceed; raises if applied without ``--confirm``."""
    if not args.delete_orphaned or _mode(args) != MigrationMode.APPLY:
        return False
    if not args.confirm:
        raise ConfirmationRequiredException(
            "Deleting orphaned records requires --confirm together with --apply"
        )
    return True


def _cleaner(args: argparse.Namespace, store: RecordStore, log: MigrationLog | None) -> OrphanCleaner:
    return OrphanCleaner(store, backup_dir=args.backup_dir or settings.backup_dir, migration_log=log)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_migrate_ids(
    args: argparse.Namespace, store: RecordStore, log: MigrationLog | None
) -> CommandResult:
    mode = _mode(args)
    confirm = _orphan_confirmation(args)
    engine = MigrationEngine(store, LookupCache(store), migration_log=log)
    cleaner = _cleaner(args, store, log)

    reports = []
    cleanups = []
    for name in args.plan or list(MIGRATION_PLANS):
        plan = MIGRATION_PLANS[name]
        report = await engine.run_plan(plan, mode)
        reports.append(report)
        if args.delete_orphaned and report.orphans:
            records = select_records(
                await store.find_all(plan.collection), report.orphaned_document_ids, plan.id_field
            )
            cleanups.append(
                await cleaner.delete_orphaned(plan.collection, records, confirm, plan.id_field)
            )

    summary = migration_summary(reports)
    if cleanups:
        summary = f"{summary}\n\nOrphaned records\n{orphan_cleanup_summary(cleanups)}"
    return summary, {"migrations": reports, "orphan_cleanup": cleanups}


async def cmd_dedupe(
    args: argparse.Namespace, store: RecordStore, log: MigrationLog | None
) -> CommandResult:
    resolver = DuplicateResolver(store, LookupCache(store), migration_log=log)
    names = args.plan or [name for name, plan in MIGRATION_PLANS.items() if plan.natural_key]
    reports = []
    for name in names:
        plan = MIGRATION_PLANS[name]
        if not plan.natural_key:
            logger.warning("Plan %s defines no natural key; skipping", name)
            continue
        reports.append(await resolver.run_plan(plan, _mode(args)))
    return duplicate_summary(reports), {"duplicates": reports}


async def cmd_audit_status(
    args: argparse.Namespace, store: RecordStore, log: MigrationLog | None
) -> CommandResult:
    report = await StatusConsistencyAuditor(store, preview_size=args.preview_size).audit()
    return status_audit_summary(report), report


async def cmd_repair_status(
    args: argparse.Namespace, store: RecordStore, log: MigrationLog | None
) -> CommandResult:
    report = await StatusRepairService(store, migration_log=log).repair(_mode(args))
    return status_repair_summary(report), report


async def cmd_audit_relationships(
    args: argparse.Namespace, store: RecordStore, log: MigrationLog | None
) -> CommandResult:
    confirm = _orphan_confirmation(args)
    checks = (
        [RELATIONSHIP_CHECK_BY_NAME[name] for name in args.check]
        if args.check
        else list(RELATIONSHIP_CHECKS)
    )
    auditor = RelationshipAuditor(store, checks)
    report = await auditor.audit()
    preview = args.preview_size if args.preview_size is not None else settings.report_preview_size
    summary = relationship_summary(report, preview)

    cleanups = []
    if args.delete_orphaned:
        cleaner = _cleaner(args, store, log)
        for check in checks:
            records = auditor.orphaned_documents.get(check.name, [])
            if records:
                cleanups.append(
                    await cleaner.delete_orphaned(check.collection, records, confirm, check.id_field)
                )
        if cleanups:
            summary = f"{summary}\n\nOrphaned records\n{orphan_cleanup_summary(cleanups)}"
    return summary, {"relationships": report, "orphan_cleanup": cleanups}


async def cmd_order_status(
    args: argparse.Namespace, store: RecordStore, log: MigrationLog | None
) -> CommandResult:
    rollups = roll_up_requisitions(await store.find_all("orders"))
    if args.requisition:
        rollups = [r for r in rollups if r.requisition_id in args.requisition]
    rows = [
        (r.requisition_id, r.vendor_count, r.status, r.dispatched, r.delivered, r.total)
        for r in rollups
    ]
    table = render_table(
        ("Requisition", "Splits", "Status", "Dispatched", "Delivered", "Total"), rows
    )
    payload = [
        {
            "requisition_id": r.requisition_id,
            "split_ids": r.split_ids,
            "status": r.status,
            "total": r.total,
            "dispatched": r.dispatched,
            "delivered": r.delivered,
            "shipped": r.shipped,
        }
        for r in rollups
    ]
    return table, {"requisitions": payload}


WRITE_COMMANDS = {"migrate-ids", "dedupe", "repair-status", "audit-relationships"}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _add_mode_flags(sp: argparse.ArgumentParser) -> None:
    group = sp.add_mutually_exclusive_group()
    group.add_argument(
        "--dry-run",
        dest="apply",
        action="store_false",
        help="Report what would change without writing (default)",
    )
    group.add_argument(
        "--apply",
        "--execute",
        dest="apply",
        action="store_true",
        help="Write the changes",
    )
    sp.set_defaults(apply=False)


def _add_orphan_flags(sp: argparse.ArgumentParser) -> None:
    sp.add_argument(
        "--delete-orphaned",
        action="store_true",
        help="Delete records with orphaned references (needs --apply and --confirm)",
    )
    sp.add_argument("--confirm", action="store_true", help="Confirm orphan deletion")
    sp.add_argument("--backup-dir", default=None, help="Export orphans here before deleting")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--snapshot", metavar="DIR", help="Use a directory of JSON exports")
    common.add_argument("--report", metavar="FILE", help="Write a JSON report to FILE")

    p = argparse.ArgumentParser(prog="uniform-ops", description=__doc__.splitlines()[0])
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("migrate-ids", parents=[common], help="Rewrite legacy references as canonical codes")
    sp.add_argument("--plan", action="append", choices=sorted(MIGRATION_PLANS))
    _add_mode_flags(sp)
    _add_orphan_flags(sp)
    sp.set_defaults(func=cmd_migrate_ids)

    sp = sub.add_parser("dedupe", parents=[common], help="Delete duplicates, keeping the oldest record")
    sp.add_argument(
        "--plan",
        action="append",
        choices=sorted(name for name, plan in MIGRATION_PLANS.items() if plan.natural_key),
    )
    _add_mode_flags(sp)
    sp.set_defaults(func=cmd_dedupe)

    sp = sub.add_parser("audit-status", parents=[common], help="Compare legacy and unified statuses")
    sp.add_argument("--preview-size", type=int, default=None)
    sp.set_defaults(func=cmd_audit_status)

    sp = sub.add_parser("repair-status", parents=[common], help="Fill missing unified statuses")
    _add_mode_flags(sp)
    sp.set_defaults(func=cmd_repair_status)

    sp = sub.add_parser("audit-relationships", parents=[common], help="List orphaned cross-collection links")
    sp.add_argument("--check", action="append", choices=sorted(RELATIONSHIP_CHECK_BY_NAME))
    sp.add_argument("--preview-size", type=int, default=None)
    _add_mode_flags(sp)
    _add_orphan_flags(sp)
    sp.set_defaults(func=cmd_audit_relationships)

    sp = sub.add_parser("order-status", parents=[common], help="Show composite requisition statuses")
    sp.add_argument("--requisition", action="append", help="Limit to these requisition ids")
    sp.set_defaults(func=cmd_order_status)

    return p


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _open_store(args: argparse.Namespace) -> RecordStore:
    if args.snapshot:
        return SnapshotRecordStore.load(args.snapshot)
    store = MongoRecordStore()
    await store.connect()
    return store


async def run(args: argparse.Namespace) -> int:
    store = await _open_store(args)
    applying = args.cmd in WRITE_COMMANDS and _mode(args) == MigrationMode.APPLY
    log = (
        MigrationLog(store, source=f"uniform-ops {args.cmd}")
        if applying and settings.migration_log_enabled
        else None
    )
    try:
        if log is not None:
            await log.start({"command": args.cmd, "snapshot": args.snapshot})
        summary, payload = await args.func(args, store, log)
        if log is not None:
            await log.complete({"command": args.cmd})
    finally:
        if isinstance(store, MongoRecordStore):
            store.close()

    print(summary)
    if args.report:
        write_json_report(args.report, payload)
        print(f"Report written to {args.report}")
    if applying and isinstance(store, SnapshotRecordStore):
        store.dump(args.snapshot)
        print(f"Snapshot {args.snapshot} updated")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except AppException as exc:
        print(f"ERROR [{exc.code}]: {exc.message}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
