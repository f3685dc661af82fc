"""
Ledger writer: the only code that writes to the audit ledger.

This service enforces the ledger rules:
1. Entries are append-only; nothing here deletes or edits content
2. Every entry has one fixed shape (AuditEntryCreate)
3. Reversal-tracking fields are set once, by a conditional update,
   so two concurrent reversals of one entry cannot both succeed

Compensating entries are written through the same append port as
ordinary ones, so downstream readers see a flat action sequence.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from warehouse_audit.errors import AuditError, CannotReverse, DbError, NotFound
from warehouse_audit.logging import get_logger
from warehouse_audit.models.audit_log import AuditLogEntry
from warehouse_audit.models.enums import AuditAction
from warehouse_audit.schemas.audit import Actor, AuditEntryCreate

logger = get_logger(__name__)


def diff_fields(old: dict | None, new: dict | None) -> list[str] | None:
    """Names of keys whose value differs between two snapshots."""
    if old is None or new is None:
        return None
    keys = set(old) | set(new)
    return sorted(k for k in keys if old.get(k) != new.get(k))


class LedgerWriter:
    """
    All ledger writes pass through this service.

    The service takes a database session as a constructor
    argument. The caller controls the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, audit_id: str) -> AuditLogEntry:
        entry = self.db.get(AuditLogEntry, audit_id)
        if entry is None:
            raise NotFound(
                "Audit log not found", details={"audit_id": audit_id}
            )
        return entry

    def append(
        self,
        request: AuditEntryCreate,
        actor: Actor,
        reason: str | None = None,
    ) -> AuditLogEntry:
        """
        Append one entry to the ledger.

        The actor is denormalized onto the entry so it stays
        accurate even if the user account later changes.
        For UPDATE entries without explicit changed_fields, the
        changed keys are derived from the two snapshots.
        """
        changed_fields = request.changed_fields
        if changed_fields is None and request.action == AuditAction.UPDATE:
            changed_fields = diff_fields(request.old_data, request.new_data)

        entry = AuditLogEntry(
            action=request.action,
            entity_type=request.entity_type,
            entity_id=request.entity_id,
            entity_identifier=request.entity_identifier,
            user_id=actor.user_id,
            user_email=actor.email,
            user_role=actor.role,
            old_data=request.old_data,
            new_data=request.new_data,
            changed_fields=changed_fields,
            notes=request.notes,
            reason=reason,
        )
        try:
            self.db.add(entry)
            self.db.flush()
        except SQLAlchemyError as e:
            raise AuditError(
                "Failed to write audit entry",
                details=str(e),
                step="write_audit",
            ) from e

        logger.info(
            "audit_appended",
            audit_id=entry.id,
            action=entry.action.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
        )
        return entry

    def link(
        self,
        original: AuditLogEntry,
        compensation_id: str,
        actor: Actor,
        reason: str | None,
        repair: bool = False,
    ) -> None:
        """
        Mark the original entry reversed by the compensation.

        The update only applies if the entry is still in the state
        the caller observed: not reversed, or, when repairing a stale
        flag, still pointing at the same stale compensation. If
        another request got there first, nothing is written and
        CannotReverse is raised so the caller's transaction rolls back.
        """
        conditions = [AuditLogEntry.id == original.id]
        if repair:
            conditions.append(AuditLogEntry.is_reversed.is_(True))
            if original.reversal_audit_id is None:
                conditions.append(AuditLogEntry.reversal_audit_id.is_(None))
            else:
                conditions.append(
                    AuditLogEntry.reversal_audit_id == original.reversal_audit_id
                )
        else:
            conditions.append(AuditLogEntry.is_reversed.is_(False))

        try:
            result = self.db.execute(
                update(AuditLogEntry)
                .where(*conditions)
                .values(
                    is_reversed=True,
                    reversed_at=datetime.utcnow(),
                    reversed_by=actor.user_id,
                    reversal_audit_id=compensation_id,
                    reversal_reason=reason,
                )
                .execution_options(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            raise DbError("mark_reversed", "Failed to mark entry reversed", str(e)) from e

        if result.rowcount != 1:
            raise CannotReverse(
                "Entry was reversed by a concurrent request",
                details={"audit_id": original.id},
            )
        self.db.refresh(original)

    def later_entries_for(self, entry: AuditLogEntry) -> list[AuditLogEntry]:
        """Entries for the same entity recorded after this one."""
        entries = self.db.execute(
            select(AuditLogEntry)
            .where(
                AuditLogEntry.entity_type == entry.entity_type,
                AuditLogEntry.entity_id == entry.entity_id,
                AuditLogEntry.created_at > entry.created_at,
                AuditLogEntry.id != entry.id,
            )
            .order_by(AuditLogEntry.created_at)
        ).scalars().all()
        return list(entries)
