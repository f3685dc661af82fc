"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class AuditAction(str, enum.Enum):
    """Kinds of mutation recorded in the audit ledger."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    STATUS_CHANGE = "STATUS_CHANGE"
    FULFILL = "FULFILL"
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class ReversalStrategy(str, enum.Enum):
    """The compensating operation chosen for an audit entry."""
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    REVERT = "REVERT"


class StockStatus(str, enum.Enum):
    """Receiving progress of an incoming stock aggregate."""
    PENDING = "pending"
    PARTIALLY_RECEIVED = "partially_received"
    FULLY_RECEIVED = "fully_received"

