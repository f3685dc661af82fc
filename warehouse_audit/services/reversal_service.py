"""
Reversal service: the ReverseAction operation end to end.

1. Validate the entry (exists, not reversed, nothing depends on it)
2. If only the reversed flag blocks it, check for a stale flag
3. Execute the compensating strategy
4. Append the compensation and link the original to it

Authorization happens before this service is called. The caller
controls the commit; any error leaves the session to be rolled back.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from warehouse_audit.errors import CannotReverse
from warehouse_audit.logging import get_logger
from warehouse_audit.models.enums import ReversalStrategy
from warehouse_audit.schemas.audit import Actor
from warehouse_audit.services.consistency_repair import ConsistencyRepair
from warehouse_audit.services.executor import ReversalExecutor
from warehouse_audit.services.validator import ReversalValidator, ReversalVerdict

logger = get_logger(__name__)


@dataclass
class ReversalOutcome:
    audit_id: str
    reversal_audit_id: str
    strategy: ReversalStrategy
    repaired: bool = False


class ReversalService:

    def __init__(self, db: Session, dependency_check=None):
        self.db = db
        self.validator = ReversalValidator(db, dependency_check=dependency_check)
        self.repair = ConsistencyRepair(db)
        self.executor = ReversalExecutor(db)

    def check(self, audit_id: str) -> tuple[ReversalVerdict, bool]:
        """Return the verdict and whether a blocked verdict is repairable."""
        verdict = self.validator.validate(audit_id)
        return verdict, self.repair.should_repair(verdict)

    def reverse(
        self, audit_id: str, actor: Actor, reason: str | None = None
    ) -> ReversalOutcome:
        verdict, repairable = self.check(audit_id)

        if not verdict.can_reverse and not repairable:
            logger.info(
                "reversal_rejected", audit_id=audit_id, reason=verdict.reason
            )
            raise CannotReverse(
                verdict.reason or "Cannot reverse action",
                details={
                    "audit_id": audit_id,
                    "strategy": verdict.strategy.value,
                },
            )

        reversal_audit_id = self.executor.execute(
            verdict.entry,
            verdict.strategy,
            actor,
            reason=reason,
            repair=repairable,
        )
        return ReversalOutcome(
            audit_id=audit_id,
            reversal_audit_id=reversal_audit_id,
            strategy=verdict.strategy,
            repaired=repairable,
        )
