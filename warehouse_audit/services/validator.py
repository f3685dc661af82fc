"""
Reversal validator.

Decides whether an audit entry can be reversed and which
compensating strategy applies. The strategy depends only on the
original action; reversibility also depends on the entry's state
and on whether later actions build on it.
"""

from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from warehouse_audit.errors import UnknownStrategy
from warehouse_audit.models.audit_log import AuditLogEntry
from warehouse_audit.models.enums import AuditAction, ReversalStrategy
from warehouse_audit.services.ledger_writer import LedgerWriter
from warehouse_audit.services.steps import db_step


STRATEGY_FOR_ACTION: dict[AuditAction, ReversalStrategy] = {
    AuditAction.CREATE: ReversalStrategy.DELETE,
    AuditAction.DELETE: ReversalStrategy.RESTORE,
    AuditAction.UPDATE: ReversalStrategy.REVERT,
    AuditAction.STATUS_CHANGE: ReversalStrategy.REVERT,
    AuditAction.FULFILL: ReversalStrategy.REVERT,
    AuditAction.APPROVE: ReversalStrategy.REVERT,
    AuditAction.REJECT: ReversalStrategy.REVERT,
}

ALREADY_REVERSED = "Action already reversed"


def strategy_for(action: AuditAction) -> ReversalStrategy:
    try:
        return STRATEGY_FOR_ACTION[AuditAction(action)]
    except (KeyError, ValueError):
        raise UnknownStrategy(
            f"No reversal strategy for action '{action}'"
        ) from None


@dataclass
class ReversalVerdict:
    audit_id: str
    can_reverse: bool
    strategy: ReversalStrategy
    reason: str | None = None
    # True when the reversed flag is the only thing blocking
    blocked_by_flag: bool = False
    entry: AuditLogEntry | None = field(default=None, repr=False)


class LaterActionDependencyCheck:
    """
    Blocks reversal when a later action on the same entity is live.

    A later entry counts unless it has itself been reversed or it is
    this entry's own compensation (a stale reversal leaves one).
    Returns a blocking reason, or None.
    """

    def __init__(self, ledger: LedgerWriter):
        self.ledger = ledger

    def __call__(self, entry: AuditLogEntry) -> str | None:
        for later in self.ledger.later_entries_for(entry):
            if later.is_reversed or later.id == entry.reversal_audit_id:
                continue
            return (
                f"A later {later.action.value} on this "
                f"{entry.entity_type} depends on it (audit {later.id})"
            )
        return None


class ReversalValidator:

    def __init__(self, db: Session, dependency_check=None):
        self.db = db
        self.ledger = LedgerWriter(db)
        self.dependency_check = dependency_check or LaterActionDependencyCheck(
            self.ledger
        )

    def validate(self, audit_id: str) -> ReversalVerdict:
        """
        Raises NotFound if the entry does not exist.
        """
        with db_step("fetch_audit"):
            entry = self.ledger.get(audit_id)
        strategy = strategy_for(entry.action)

        reasons: list[str] = []
        if entry.is_reversed:
            reasons.append(ALREADY_REVERSED)

        if strategy != ReversalStrategy.DELETE and entry.old_data is None:
            reasons.append("No prior snapshot recorded to reverse to")

        with db_step("check_dependencies"):
            blocker = self.dependency_check(entry)
        if blocker:
            reasons.append(blocker)

        return ReversalVerdict(
            audit_id=entry.id,
            can_reverse=not reasons,
            strategy=strategy,
            reason="; ".join(reasons) or None,
            blocked_by_flag=reasons == [ALREADY_REVERSED],
            entry=entry,
        )
