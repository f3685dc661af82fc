"""
Admin repair endpoints.

For data that the regular reversal path cannot reach: lots with
no CREATE entry, and goods-in rows orphaned by earlier failures.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from warehouse_audit.api.dependencies import (
    ERROR_RESPONSES,
    admin_actor,
    correlation_id,
)
from warehouse_audit.errors import DbError, ReversalError
from warehouse_audit.models.base import get_db
from warehouse_audit.schemas.audit import Actor
from warehouse_audit.schemas.reversal import (
    DirectLotReversalRequest,
    DirectLotReversalResponse,
    OrphanReport,
)
from warehouse_audit.services.executor import ReversalExecutor
from warehouse_audit.services.reconciliation import ReconciliationService

router = APIRouter(
    prefix="/repairs", tags=["Repairs"], responses=ERROR_RESPONSES
)


@router.post("/direct-lot-reversal", response_model=DirectLotReversalResponse)
def direct_lot_reversal(
    request: DirectLotReversalRequest,
    actor: Actor = Depends(admin_actor),
    cid: str | None = Depends(correlation_id),
    db: Session = Depends(get_db),
):
    """Cascade-delete a lot that was never recorded in the ledger."""
    service = ReversalExecutor(db)
    try:
        audit_id = service.reverse_lot_directly(
            request.lot_id, actor, request.reason
        )
        db.commit()
    except ReversalError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise DbError("commit", "Failed to commit lot reversal", str(e)) from e

    return DirectLotReversalResponse(
        lot_id=request.lot_id, audit_id=audit_id, correlation_id=cid
    )


@router.get("/orphans", response_model=OrphanReport)
def list_orphans(
    actor: Actor = Depends(admin_actor),
    db: Session = Depends(get_db),
):
    """List goods-in rows and receipts left without a lot."""
    rows, receipts = ReconciliationService(db).scan()
    return OrphanReport(orphaned_row_ids=rows, empty_receipt_ids=receipts)


@router.post("/orphans/purge", response_model=OrphanReport)
def purge_orphans(
    actor: Actor = Depends(admin_actor),
    db: Session = Depends(get_db),
):
    """
    Delete orphaned goods-in rows and the receipts they leave empty.

    Each removal is written to the ledger as a DELETE entry.
    """
    try:
        rows, receipts = ReconciliationService(db).purge(actor)
        db.commit()
    except ReversalError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise DbError("commit", "Failed to commit purge", str(e)) from e
    return OrphanReport(
        orphaned_row_ids=rows, empty_receipt_ids=receipts, purged=True
    )
