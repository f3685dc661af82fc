"""
Pydantic schemas for audit ledger operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
are often different.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from warehouse_audit.models.enums import AuditAction, ReversalStrategy


class Actor(BaseModel):
    """The authenticated user performing a request."""
    user_id: str
    email: str
    role: str
    full_name: str | None = None


# --- Request Schemas ---

class AuditEntryCreate(BaseModel):
    """
    One mutation to record in the ledger.

    This is the single shape every domain write path uses
    to append to the ledger.
    """
    action: AuditAction
    entity_type: str = Field(min_length=1, max_length=50)
    entity_id: str = Field(min_length=1, max_length=36)
    entity_identifier: str = Field(min_length=1, max_length=255)
    old_data: dict[str, Any] | None = None
    new_data: dict[str, Any] | None = None
    changed_fields: list[str] | None = None
    notes: str | None = None


# --- Response Schemas ---

class AuditEntryResponse(BaseModel):
    id: str
    action: AuditAction
    entity_type: str
    entity_id: str
    entity_identifier: str
    user_id: str
    user_email: str
    user_role: str
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    changed_fields: list[str] | None
    notes: str | None
    reason: str | None
    is_reversed: bool
    reversed_at: datetime | None
    reversed_by: str | None
    reversal_audit_id: str | None
    reversal_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ReversibilityResponse(BaseModel):
    audit_id: str
    can_reverse: bool
    reason: str | None
    strategy: ReversalStrategy
    repairable: bool = False
