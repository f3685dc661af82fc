"""
Reversal executor: applies a compensating operation.

Each strategy undoes one kind of action:
- DELETE removes what a CREATE made (with the goods-in cascade
  for lots)
- RESTORE re-inserts what a DELETE removed, from the old snapshot
- REVERT overwrites the live row with the old snapshot

After the domain writes, one compensating entry is appended to
the ledger and the original entry is linked to it. The original
is never modified beyond its reversal-tracking fields.

Every storage call runs inside a named step. A failure anywhere
raises an error tagged with that step and aborts the request; the
caller rolls back the session, so nothing is left half-applied.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from warehouse_audit.config import get_settings
from warehouse_audit.errors import DbError, NotFound, UnknownStrategy
from warehouse_audit.logging import get_logger
from warehouse_audit.models.audit_log import AuditLogEntry
from warehouse_audit.models.enums import AuditAction, ReversalStrategy
from warehouse_audit.models.goods_in import GoodsInReceipt, GoodsInRow
from warehouse_audit.models.incoming_stock import IncomingStock
from warehouse_audit.models.lot import Lot, Roll
from warehouse_audit.schemas.audit import Actor, AuditEntryCreate
from warehouse_audit.services import entity_resolver
from warehouse_audit.services.ledger_writer import LedgerWriter
from warehouse_audit.services.record_store import RecordStore, to_snapshot
from warehouse_audit.services.steps import db_step

logger = get_logger(__name__)


# The compensation reads as an ordinary action to anyone
# consuming the ledger.
COMPENSATING_ACTION = {
    ReversalStrategy.DELETE: AuditAction.DELETE,
    ReversalStrategy.RESTORE: AuditAction.CREATE,
    ReversalStrategy.REVERT: AuditAction.UPDATE,
}

COMPENSATING_NOTE = {
    ReversalStrategy.DELETE: "Reversed creation.",
    ReversalStrategy.RESTORE: "Restored deleted record.",
    ReversalStrategy.REVERT: "Reverted update.",
}


@dataclass
class CascadeResult:
    """What the goods-in cascade touched for one lot."""
    lot_id: str
    total_meters: Decimal = Decimal("0")
    roll_ids: list[str] = field(default_factory=list)
    row_ids: list[str] = field(default_factory=list)
    deleted_receipt_ids: list[str] = field(default_factory=list)
    stock_adjustments: dict[str, Decimal] = field(default_factory=dict)
    used_ledger_fallback: bool = False


class ReversalExecutor:

    def __init__(self, db: Session):
        self.db = db
        self.store = RecordStore(db)
        self.ledger = LedgerWriter(db)
        self.default_reason = get_settings().DEFAULT_REVERSAL_REASON

    # --- Dispatch ---

    def execute(
        self,
        entry: AuditLogEntry,
        strategy: ReversalStrategy,
        actor: Actor,
        reason: str | None = None,
        repair: bool = False,
    ) -> str:
        """
        Reverse one entry and return the compensating entry's id.

        With repair=True the entry is already flagged reversed;
        the link step then replaces its stale forward pointer.
        """
        handlers = {
            ReversalStrategy.DELETE: self._delete,
            ReversalStrategy.RESTORE: self._restore,
            ReversalStrategy.REVERT: self._revert,
        }
        handler = handlers.get(strategy)
        if handler is None:
            raise UnknownStrategy(
                f"Unknown reversal strategy '{strategy}'",
                details={"audit_id": entry.id},
            )

        reason = reason or self.default_reason
        logger.info(
            "reversal_started",
            audit_id=entry.id,
            strategy=strategy.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            repair=repair,
        )

        handler(entry)

        note = COMPENSATING_NOTE[strategy]
        if repair:
            note = f"Repaired stale reversal. {note}"

        # Mirror the original: what it wrote is now what is undone
        compensation = self.ledger.append(
            AuditEntryCreate(
                action=COMPENSATING_ACTION[strategy],
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                entity_identifier=entry.entity_identifier,
                old_data=entry.new_data,
                new_data=entry.old_data,
                changed_fields=(
                    entry.changed_fields
                    if strategy == ReversalStrategy.REVERT else None
                ),
                notes=f"{note} Reason: {reason}",
            ),
            actor,
            reason=reason,
        )

        self.ledger.link(entry, compensation.id, actor, reason, repair=repair)

        logger.info(
            "reversal_completed",
            audit_id=entry.id,
            reversal_audit_id=compensation.id,
            strategy=strategy.value,
        )
        return compensation.id

    # --- Strategies ---

    def _delete(self, entry: AuditLogEntry) -> None:
        model = entity_resolver.resolve(entry.entity_type)
        if entity_resolver.is_composite(entry.entity_type):
            self.cascade_delete_lot(entry.entity_id, entry.new_data)
            return

        with db_step("delete_entity"):
            deleted = self.store.delete(model, entry.entity_id)
        if not deleted:
            raise DbError(
                "delete_entity",
                f"{entry.entity_type} {entry.entity_id} no longer exists",
            )

    def _restore(self, entry: AuditLogEntry) -> None:
        """Re-insert the old snapshot, keeping its id and created_at."""
        model = entity_resolver.resolve(entry.entity_type)
        data = dict(entry.old_data or {})
        data.setdefault("id", entry.entity_id)
        with db_step("restore_entity"):
            self.store.insert(model, data)

    def _revert(self, entry: AuditLogEntry) -> None:
        """
        Overwrite the live row with the old snapshot.

        This is a field-for-field overwrite, not a merge: later
        edits to the same fields are rolled back too.
        """
        model = entity_resolver.resolve(entry.entity_type)
        with db_step("revert_entity"):
            record = self.store.overwrite(
                model, entry.entity_id, entry.old_data or {}
            )
        if record is None:
            raise DbError(
                "revert_entity",
                f"{entry.entity_type} {entry.entity_id} no longer exists",
            )

    # --- Goods-in cascade ---

    def cascade_delete_lot(
        self, lot_id: str, recorded: dict[str, Any] | None
    ) -> CascadeResult:
        """
        Delete a lot together with everything its receipt created.

        Order matters: the stock aggregate is decremented before the
        rows that prove the contribution are removed, and children
        are always deleted before their parents.

        `recorded` is the lot snapshot from the ledger. It is only
        read when no live goods-in rows lead to an aggregate.
        """
        recorded = recorded or {}
        result = CascadeResult(lot_id=lot_id)

        with db_step("fetch_lot"):
            lot = self.db.get(Lot, lot_id)
        if lot is None:
            raise DbError("fetch_lot", f"lot {lot_id} no longer exists")

        # 1. Children and their total contribution
        with db_step("collect_rolls"):
            rolls = list(self.db.execute(
                select(Roll).where(Roll.lot_id == lot_id)
            ).scalars().all())
        result.roll_ids = [r.id for r in rolls]
        if rolls:
            result.total_meters = sum(
                (Decimal(str(r.meters)) for r in rolls), Decimal("0")
            )
        else:
            result.total_meters = Decimal(str(lot.meters))

        # 2. Linking rows, grouped by receipt
        with db_step("collect_goods_rows"):
            rows = list(self.db.execute(
                select(GoodsInRow).where(GoodsInRow.lot_id == lot_id)
            ).scalars().all())
        result.row_ids = [r.id for r in rows]
        rows_by_receipt: dict[str, list[GoodsInRow]] = defaultdict(list)
        for row in rows:
            rows_by_receipt[row.receipt_id].append(row)

        with db_step("collect_receipts"):
            receipts = list(self.db.execute(
                select(GoodsInReceipt).where(
                    GoodsInReceipt.id.in_(list(rows_by_receipt))
                )
            ).scalars().all()) if rows_by_receipt else []

        # 3. Roll back the aggregates
        contributions = self._contributions(rows, receipts, rolls, result.total_meters)
        if not contributions:
            with db_step("read_recorded_contribution"):
                contributions = self._recorded_contribution(
                    recorded, result.total_meters
                )
            result.used_ledger_fallback = bool(contributions)
            if contributions:
                logger.warning(
                    "cascade_ledger_fallback",
                    lot_id=lot_id,
                    incoming_stock_id=next(iter(contributions)),
                )
            else:
                logger.info("cascade_no_aggregate", lot_id=lot_id)

        for stock_id, meters in contributions.items():
            with db_step("fetch_incoming_stock"):
                stock = self.db.get(IncomingStock, stock_id)
            if stock is None:
                raise DbError(
                    "fetch_incoming_stock",
                    f"incoming stock {stock_id} not found",
                )
            with db_step("update_incoming_stock"):
                stock.decrement_received(meters)
                self.db.flush()
            result.stock_adjustments[stock_id] = meters
            logger.info(
                "incoming_stock_decremented",
                incoming_stock_id=stock_id,
                meters=str(meters),
                received_meters=str(stock.received_meters),
                status=stock.status.value,
            )

        # 4. Linking rows
        with db_step("delete_goods_rows"):
            for row in rows:
                self.db.delete(row)
            self.db.flush()

        # 5. Receipts left empty
        empty_receipts: list[GoodsInReceipt] = []
        with db_step("check_remaining_rows"):
            for receipt in receipts:
                remaining = self.db.execute(
                    select(func.count(GoodsInRow.id)).where(
                        GoodsInRow.receipt_id == receipt.id
                    )
                ).scalar()
                if not remaining:
                    empty_receipts.append(receipt)
        with db_step("delete_receipt"):
            for receipt in empty_receipts:
                self.db.delete(receipt)
            self.db.flush()
        result.deleted_receipt_ids = [r.id for r in empty_receipts]

        # 6. Children
        with db_step("delete_rolls"):
            for roll in rolls:
                self.db.delete(roll)
            self.db.flush()

        # 7. The lot itself
        with db_step("delete_lot"):
            self.db.delete(lot)
            self.db.flush()

        logger.info(
            "lot_cascade_completed",
            lot_id=lot_id,
            rolls=len(result.roll_ids),
            goods_rows=len(result.row_ids),
            receipts_deleted=len(result.deleted_receipt_ids),
            ledger_fallback=result.used_ledger_fallback,
        )
        return result

    def _contributions(
        self,
        rows: list[GoodsInRow],
        receipts: list[GoodsInReceipt],
        rolls: list[Roll],
        total: Decimal,
    ) -> dict[str, Decimal]:
        """
        Meters to take off each aggregate, from live linking data.

        A lot received against a single aggregate gives it the whole
        total. When rows span several aggregates, each gets the meters
        of the rolls its rows name.
        """
        stock_by_receipt = {
            r.id: r.incoming_stock_id for r in receipts if r.incoming_stock_id
        }
        stock_ids = list(dict.fromkeys(
            stock_by_receipt[row.receipt_id]
            for row in rows if row.receipt_id in stock_by_receipt
        ))
        if not stock_ids:
            return {}
        if len(stock_ids) == 1:
            return {stock_ids[0]: total}

        meters_by_roll = {r.id: Decimal(str(r.meters)) for r in rolls}
        contributions: dict[str, Decimal] = defaultdict(Decimal)
        for row in rows:
            stock_id = stock_by_receipt.get(row.receipt_id)
            if stock_id and row.roll_id in meters_by_roll:
                contributions[stock_id] += meters_by_roll[row.roll_id]
        return dict(contributions)

    def _recorded_contribution(
        self, recorded: dict[str, Any], total: Decimal
    ) -> dict[str, Decimal]:
        """Amount and target as written in the ledger snapshot."""
        stock_id = recorded.get("incoming_stock_id")
        if not stock_id:
            return {}
        meters = recorded.get("meters")
        return {stock_id: Decimal(str(meters)) if meters is not None else total}

    # --- Repair ---

    def reverse_lot_directly(
        self, lot_id: str, actor: Actor, reason: str | None = None
    ) -> str:
        """
        Remove a lot that has no CREATE entry to reverse.

        Writes a DELETE entry carrying the lot snapshot so the
        removal is still traceable. Returns the new entry's id.
        """
        reason = reason or "Missing audit entry"
        lot = self.db.get(Lot, lot_id)
        if lot is None:
            raise NotFound("Lot not found", details={"lot_id": lot_id})

        has_rows = self.db.execute(
            select(func.count(GoodsInRow.id)).where(GoodsInRow.lot_id == lot_id)
        ).scalar()
        if not has_rows:
            raise NotFound(
                "No goods-in rows found for this lot",
                details={"lot_id": lot_id},
            )

        snapshot = to_snapshot(lot)
        lot_number = lot.lot_number
        self.cascade_delete_lot(lot_id, snapshot)

        entry = self.ledger.append(
            AuditEntryCreate(
                action=AuditAction.DELETE,
                entity_type="lot",
                entity_id=lot_id,
                entity_identifier=f"Direct reversal: {lot_number}",
                old_data=snapshot,
                new_data=None,
                notes=(
                    "Direct reversal of lot without CREATE entry. "
                    f"Reason: {reason}"
                ),
            ),
            actor,
            reason=reason,
        )
        return entry.id
