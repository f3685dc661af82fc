"""
Audit ledger API endpoints.

POST /audit-logs is the append port that every domain write path
in the host application calls after a mutation.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warehouse_audit.api.dependencies import ERROR_RESPONSES, current_actor
from warehouse_audit.errors import ReversalError
from warehouse_audit.models.base import get_db
from warehouse_audit.schemas.audit import (
    Actor,
    AuditEntryCreate,
    AuditEntryResponse,
)
from warehouse_audit.services.ledger_writer import LedgerWriter

router = APIRouter(
    prefix="/audit-logs", tags=["Audit Logs"], responses=ERROR_RESPONSES
)


def _to_response(entry) -> AuditEntryResponse:
    response = AuditEntryResponse.model_validate(entry)
    # Legacy rows only have the reason inside notes
    response.reason = entry.recorded_reason()
    return response


@router.post("", response_model=AuditEntryResponse, status_code=201)
def append_entry(
    request: AuditEntryCreate,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    """Record one mutation. The caller's identity is stamped on the entry."""
    service = LedgerWriter(db)
    try:
        entry = service.append(request, actor)
        db.commit()
    except ReversalError:
        db.rollback()
        raise
    return _to_response(entry)


@router.get("/{audit_id}", response_model=AuditEntryResponse)
def get_entry(
    audit_id: str,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    """Get one ledger entry, including its reversal state."""
    return _to_response(LedgerWriter(db).get(audit_id))
