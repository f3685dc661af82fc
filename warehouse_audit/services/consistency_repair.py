"""
Consistency repair for stale reversal flags.

An entry can end up marked reversed while the entity it describes
still exists (the flag was written but the compensation never took
effect). When the flag is the only thing blocking a reversal, the
live table is checked: if the entity is still there, the block is
treated as a data bug and the reversal runs again as a repair.
"""

from sqlalchemy.orm import Session

from warehouse_audit.logging import get_logger
from warehouse_audit.models.enums import ReversalStrategy
from warehouse_audit.services import entity_resolver
from warehouse_audit.services.record_store import RecordStore
from warehouse_audit.services.steps import db_step
from warehouse_audit.services.validator import ReversalVerdict

logger = get_logger(__name__)

# Only a delete leaves the entity gone. After a restore or a revert
# the entity is expected to exist, so its presence proves nothing.
REPAIRABLE_STRATEGIES = frozenset({ReversalStrategy.DELETE})


class ConsistencyRepair:

    def __init__(self, db: Session):
        self.db = db
        self.store = RecordStore(db)

    def entity_exists(self, entity_type: str, entity_id: str) -> bool:
        model = entity_resolver.resolve(entity_type)
        with db_step("check_entity_exists"):
            return self.store.exists(model, entity_id)

    def should_repair(self, verdict: ReversalVerdict) -> bool:
        """True if a blocked verdict is really a stale flag."""
        if verdict.can_reverse or not verdict.blocked_by_flag:
            return False
        if verdict.strategy not in REPAIRABLE_STRATEGIES:
            return False

        entry = verdict.entry
        exists = self.entity_exists(entry.entity_type, entry.entity_id)
        if exists:
            logger.warning(
                "stale_reversal_flag",
                audit_id=entry.id,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                stale_reversal_audit_id=entry.reversal_audit_id,
            )
        return exists
