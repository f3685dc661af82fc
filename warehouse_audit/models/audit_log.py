"""
Audit log model.

Every mutation to a business record is captured here by the
host application. Entries are append-only: the only fields that
ever change after insert are the reversal-tracking ones, and they
are set once, when the entry is reversed.
"""

import re
from datetime import datetime
from typing import Any

from sqlalchemy import String, DateTime, Text, Boolean, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_audit.models.base import Base, new_id
from warehouse_audit.models.enums import AuditAction

# Legacy rows carry the reason only as a "Reason: ..." suffix in notes
NOTES_REASON_PATTERN = re.compile(r"Reason:\s*(.+)$", re.DOTALL)


class AuditLogEntry(Base):
    """
    One recorded mutation of one entity.

    entity_identifier and the user_* columns are snapshots taken at
    write time. They are never recomputed, so an entry stays readable
    after the entity is renamed or the user account changes.
    """

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(AuditAction, name="audit_action_enum", create_constraint=True),
        nullable=False,
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    entity_identifier: Mapped[str] = mapped_column(String(255), nullable=False)

    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_role: Mapped[str] = mapped_column(String(50), nullable=False)

    old_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    changed_fields: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Reason given when this entry was written as a compensation
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Reversal tracking: unset until the entry is reversed
    is_reversed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    reversed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    reversed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reversal_audit_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True
    )
    reversal_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )

    def recorded_reason(self) -> str | None:
        """
        Reason this entry was written with.

        Prefers the structured column; falls back to parsing the
        notes suffix for rows written before the column existed.
        """
        if self.reason:
            return self.reason
        if self.notes:
            match = NOTES_REASON_PATTERN.search(self.notes)
            if match:
                return match.group(1).strip()
        return None

    def __repr__(self) -> str:
        return (
            f"<AuditLogEntry {self.action.value} "
            f"{self.entity_type}:{self.entity_id}"
            f"{' (reversed)' if self.is_reversed else ''}>"
        )
