"""
Pydantic schemas for reversal and repair operations.
"""

from typing import Any

from pydantic import BaseModel, Field

from warehouse_audit.models.enums import ReversalStrategy


class ReverseActionRequest(BaseModel):
    audit_id: str = Field(min_length=1, max_length=36)
    reason: str | None = Field(default=None, max_length=500)


class ReverseActionResponse(BaseModel):
    success: bool = True
    reversal_audit_id: str
    correlation_id: str | None
    strategy: ReversalStrategy
    repaired: bool = False


class DirectLotReversalRequest(BaseModel):
    """Remove a lot whose creation never made it into the ledger."""
    lot_id: str = Field(min_length=1, max_length=36)
    reason: str | None = Field(default=None, max_length=500)


class DirectLotReversalResponse(BaseModel):
    success: bool = True
    lot_id: str
    audit_id: str
    correlation_id: str | None


class OrphanReport(BaseModel):
    """Linking rows and receipts left behind by partial failures."""
    orphaned_row_ids: list[str]
    empty_receipt_ids: list[str]
    purged: bool = False


class ErrorResponse(BaseModel):
    error: str
    reason: str
    details: Any = None
    step: str | None = None
    correlation_id: str | None = None
