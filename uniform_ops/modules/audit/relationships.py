"""Read-only audit of cross-collection links that point at nothing."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from uniform_ops.database.store import RecordStore
from uniform_ops.modules.audit.schemas import (
    OrphanedRecord,
    RelationshipAuditReport,
    RelationshipCheckReport,
)
from uniform_ops.modules.identifiers.codes import document_identity

logger = logging.getLogger(__name__)


def _any(document: Mapping[str, Any]) -> bool:
    return True


@dataclass(frozen=True)
class RelationshipLink:
    """``field`` on the source must equal ``target_field`` on some target record."""

    field: str
    target_collection: str
    target_field: str = "id"
    label: str = ""
    # Optional links are only checked when the source value is set
    optional: bool = False

    @property
    def display_name(self) -> str:
        return self.label or self.target_collection


@dataclass(frozen=True)
class RelationshipCheck:
    name: str
    collection: str
    links: tuple[RelationshipLink, ...]
    id_field: str = "id"
    selector: Callable[[Mapping[str, Any]], bool] = _any
    description: str = ""


def _claims_shipment(document: Mapping[str, Any]) -> bool:
    if document.get("pr_number") is None:
        return False
    return (
        document.get("dispatchStatus") == "SHIPPED"
        or document.get("unified_pr_status") == "IN_SHIPMENT"
        or document.get("deliveryStatus") in ("PARTIALLY_DELIVERED", "DELIVERED")
    )


RELATIONSHIP_CHECKS: tuple[RelationshipCheck, ...] = (
    RelationshipCheck(
        name="shipments-to-requisitions",
        collection="shipments",
        id_field="shipmentId",
        links=(RelationshipLink("prNumber", "orders", "pr_number", label="PR"),),
        description="Shipments whose prNumber matches no orders.pr_number",
    ),
    RelationshipCheck(
        name="requisitions-without-shipments",
        collection="orders",
        selector=_claims_shipment,
        links=(RelationshipLink("pr_number", "shipments", "prNumber", label="Shipment for PR"),),
        description="PRs with a shipped/delivered status but no shipment record",
    ),
    RelationshipCheck(
        name="grns-to-purchase-orders",
        collection="grns",
        links=(
            RelationshipLink("poNumber", "purchaseorders", "client_po_number", label="PO"),
        ),
        description="GRNs whose poNumber matches no purchaseorders.client_po_number",
    ),
    RelationshipCheck(
        name="invoices-to-grns",
        collection="invoices",
        links=(RelationshipLink("grnId", "grns", "id", label="GRN"),),
        description="Invoices whose grnId matches no grns.id",
    ),
    RelationshipCheck(
        name="productvendors",
        collection="productvendors",
        links=(
            RelationshipLink("vendorId", "vendors", "id", label="Vendor"),
            RelationshipLink("uniformId", "uniforms", "id", label="Uniform", optional=True),
        ),
        description="Product-vendor links to missing vendors or products",
    ),
    RelationshipCheck(
        name="vendorinventories",
        collection="vendorinventories",
        links=(
            RelationshipLink("vendorId", "vendors", "id", label="Vendor"),
            RelationshipLink("uniformId", "uniforms", "id", label="Uniform", optional=True),
        ),
        description="Vendor inventory records for missing vendors or products",
    ),
)

RELATIONSHIP_CHECK_BY_NAME: dict[str, RelationshipCheck] = {
    check.name: check for check in RELATIONSHIP_CHECKS
}


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


class RelationshipAuditor:
    """Lists source records whose links resolve to no target record.

    The offending documents of the last :meth:`audit` are kept in
    ``orphaned_documents`` (by check name) so a caller can hand them to
    :class:`~uniform_ops.modules.migration.orphans.OrphanCleaner`.
    """

    def __init__(
        self,
        store: RecordStore,
        checks: Sequence[RelationshipCheck] = RELATIONSHIP_CHECKS,
    ) -> None:
        self.store = store
        self.checks = checks
        self.orphaned_documents: dict[str, list[dict[str, Any]]] = {}
        self._targets: dict[tuple[str, str], set[Any]] = {}

    async def audit(self) -> RelationshipAuditReport:
        self._targets.clear()
        self.orphaned_documents.clear()
        report = RelationshipAuditReport(generated_at=datetime.now(UTC))
        for check in self.checks:
            report.checks.append(await self.run_check(check))
        return report

    async def run_check(self, check: RelationshipCheck) -> RelationshipCheckReport:
        result = RelationshipCheckReport(name=check.name, collection=check.collection)
        targets = {
            link: await self._target_values(link.target_collection, link.target_field)
            for link in check.links
        }
        offending: list[dict[str, Any]] = []

        for document in await self.store.find_all(check.collection):
            if not check.selector(document):
                continue
            result.total += 1
            issues = []
            for link in check.links:
                issue = self._link_issue(document, link, targets[link])
                if issue is not None:
                    issues.append(issue)
            if issues:
                offending.append(document)
                result.orphaned.append(
                    OrphanedRecord(
                        document_id=document_identity(document, check.id_field),
                        values={link.field: document.get(link.field) for link in check.links},
                        issues=issues,
                    )
                )

        self.orphaned_documents[check.name] = offending
        logger.info(
            "%s: %d records checked, %d orphaned", check.name, result.total, result.orphaned_count
        )
        return result

    @staticmethod
    def _link_issue(
        document: Mapping[str, Any],
        link: RelationshipLink,
        targets: set[Any],
    ) -> str | None:
        value = document.get(link.field)
        if not _is_present(value):
            return None if link.optional else f"{link.field} is missing"
        try:
            found = value in targets
        except TypeError:
            found = False
        return None if found else f"{link.display_name} {value} not found"

    async def _target_values(self, collection: str, field: str) -> set[Any]:
        key = (collection, field)
        if key not in self._targets:
            values: set[Any] = set()
            for doc in await self.store.find_all(collection):
                value = doc.get(field)
                if _is_present(value):
                    try:
                        values.add(value)
                    except TypeError:
                        continue
            self._targets[key] = values
        return self._targets[key]
