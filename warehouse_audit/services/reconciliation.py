"""
Reconciliation of goods-in linking data.

Finds goods-in rows pointing at lots that no longer exist, and the
receipts that are left empty once those rows are gone. Either can
be left behind by a lot removed outside the reversal cascade.

A purge is recorded in the ledger like any other removal: one
DELETE entry per row and per receipt, carrying its snapshot.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse_audit.logging import get_logger
from warehouse_audit.models.enums import AuditAction
from warehouse_audit.models.goods_in import GoodsInReceipt, GoodsInRow
from warehouse_audit.models.lot import Lot
from warehouse_audit.schemas.audit import Actor, AuditEntryCreate
from warehouse_audit.services.ledger_writer import LedgerWriter
from warehouse_audit.services.record_store import to_snapshot
from warehouse_audit.services.steps import db_step

logger = get_logger(__name__)

DEFAULT_PURGE_REASON = "Orphaned goods-in data"


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger = LedgerWriter(db)

    def orphaned_rows(self) -> list[GoodsInRow]:
        rows = self.db.execute(
            select(GoodsInRow)
            .outerjoin(Lot, Lot.id == GoodsInRow.lot_id)
            .where(Lot.id.is_(None))
            .order_by(GoodsInRow.id)
        ).scalars().all()
        return list(rows)

    def emptied_receipts(self, orphans: list[GoodsInRow]) -> list[GoodsInReceipt]:
        """
        Receipts holding orphans and nothing else.

        Receipts that were already empty, or that still hold rows
        for live lots, are not touched.
        """
        receipt_ids = {row.receipt_id for row in orphans}
        if not receipt_ids:
            return []
        orphan_ids = {row.id for row in orphans}

        siblings = self.db.execute(
            select(GoodsInRow.id, GoodsInRow.receipt_id)
            .where(GoodsInRow.receipt_id.in_(receipt_ids))
        ).all()
        live = {receipt_id for row_id, receipt_id in siblings if row_id not in orphan_ids}

        receipts = self.db.execute(
            select(GoodsInReceipt)
            .where(GoodsInReceipt.id.in_(receipt_ids - live))
            .order_by(GoodsInReceipt.id)
        ).scalars().all()
        return list(receipts)

    def scan(self) -> tuple[list[str], list[str]]:
        """Return ids of orphaned rows and of receipts a purge would remove."""
        with db_step("scan_orphans"):
            orphans = self.orphaned_rows()
            receipts = self.emptied_receipts(orphans)
        return [r.id for r in orphans], [r.id for r in receipts]

    def purge(
        self, actor: Actor, reason: str | None = None
    ) -> tuple[list[str], list[str]]:
        """Delete orphaned rows, then the receipts they leave empty."""
        reason = reason or DEFAULT_PURGE_REASON
        with db_step("scan_orphans"):
            orphans = self.orphaned_rows()
            receipts = self.emptied_receipts(orphans)

        with db_step("delete_orphaned_rows"):
            for row in orphans:
                self._record_removal(
                    "goods_in_row", row, f"Orphaned goods-in row {row.id}",
                    actor, reason,
                )
                self.db.delete(row)
            self.db.flush()

        with db_step("delete_empty_receipts"):
            for receipt in receipts:
                self._record_removal(
                    "goods_in_receipt", receipt,
                    f"Empty goods-in receipt {receipt.id}", actor, reason,
                )
                self.db.delete(receipt)
            self.db.flush()

        logger.info(
            "reconciliation_purged",
            goods_rows=len(orphans),
            receipts=len(receipts),
        )
        return [r.id for r in orphans], [r.id for r in receipts]

    def _record_removal(self, entity_type, record, identifier, actor, reason):
        self.ledger.append(
            AuditEntryCreate(
                action=AuditAction.DELETE,
                entity_type=entity_type,
                entity_id=record.id,
                entity_identifier=identifier,
                old_data=to_snapshot(record),
                new_data=None,
                notes=f"Purged by reconciliation. Reason: {reason}",
            ),
            actor,
            reason=reason,
        )
