"""
Reversal API endpoints.

The API layer is thin: it authorizes the caller, delegates to the
ReversalService, and owns the transaction. A reversal either
commits as a whole or is rolled back as a whole.
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
from warehouse_audit.schemas.audit import Actor, ReversibilityResponse
from warehouse_audit.schemas.reversal import (
    ReverseActionRequest,
    ReverseActionResponse,
)
from warehouse_audit.services.reversal_service import ReversalService

router = APIRouter(tags=["Reversals"], responses=ERROR_RESPONSES)


@router.post("/reversals", response_model=ReverseActionResponse)
def reverse_action(
    request: ReverseActionRequest,
    actor: Actor = Depends(admin_actor),
    cid: str | None = Depends(correlation_id),
    db: Session = Depends(get_db),
):
    """
    Reverse a previously recorded action.

    Admin only. Deletes what was created, restores what was
    deleted, or reverts what was updated, and records the
    compensation in the ledger.
    """
    service = ReversalService(db)
    try:
        outcome = service.reverse(request.audit_id, actor, request.reason)
        db.commit()
    except ReversalError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise DbError("commit", "Failed to commit reversal", str(e)) from e

    return ReverseActionResponse(
        reversal_audit_id=outcome.reversal_audit_id,
        correlation_id=cid,
        strategy=outcome.strategy,
        repaired=outcome.repaired,
    )


@router.get(
    "/audit-logs/{audit_id}/reversibility",
    response_model=ReversibilityResponse,
)
def check_reversibility(
    audit_id: str,
    actor: Actor = Depends(admin_actor),
    db: Session = Depends(get_db),
):
    """Report whether an entry can be reversed, and how."""
    verdict, repairable = ReversalService(db).check(audit_id)
    return ReversibilityResponse(
        audit_id=verdict.audit_id,
        can_reverse=verdict.can_reverse,
        reason=verdict.reason,
        strategy=verdict.strategy,
        repairable=repairable,
    )
