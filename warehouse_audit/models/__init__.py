"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from warehouse_audit.models.base import Base
from warehouse_audit.models.enums import (
    AuditAction,
    ReversalStrategy,
    StockStatus,
)
from warehouse_audit.models.audit_log import AuditLogEntry
from warehouse_audit.models.supplier import Supplier
from warehouse_audit.models.incoming_stock import IncomingStock
from warehouse_audit.models.lot import Lot, Roll
from warehouse_audit.models.goods_in import GoodsInReceipt, GoodsInRow
from warehouse_audit.models.order import Order, OrderLot
from warehouse_audit.models.profile import Profile, AccessToken

__all__ = [
    "Base",
    "AuditAction",
    "ReversalStrategy",
    "StockStatus",
    "AuditLogEntry",
    "Supplier",
    "IncomingStock",
    "Lot",
    "Roll",
    "GoodsInReceipt",
    "GoodsInRow",
    "Order",
    "OrderLot",
    "Profile",
    "AccessToken",
]
