"""Business logic services."""

from warehouse_audit.services.authorizer import ReversalAuthorizer
from warehouse_audit.services.ledger_writer import LedgerWriter
from warehouse_audit.services.validator import ReversalValidator
from warehouse_audit.services.consistency_repair import ConsistencyRepair
from warehouse_audit.services.executor import ReversalExecutor
from warehouse_audit.services.reversal_service import ReversalService
from warehouse_audit.services.reconciliation import ReconciliationService

__all__ = [
    "ReversalAuthorizer",
    "LedgerWriter",
    "ReversalValidator",
    "ConsistencyRepair",
    "ReversalExecutor",
    "ReversalService",
    "ReconciliationService",
]
