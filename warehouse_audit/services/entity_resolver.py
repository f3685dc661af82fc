"""
Entity resolver: logical entity type to physical table.

The mapping is closed. A new reversible entity type elsewhere in
the host application must be added here before its audit entries
can be reversed.
"""

from warehouse_audit.errors import UnknownEntityType
from warehouse_audit.models.base import Base
from warehouse_audit.models.goods_in import GoodsInReceipt, GoodsInRow
from warehouse_audit.models.incoming_stock import IncomingStock
from warehouse_audit.models.lot import Lot, Roll
from warehouse_audit.models.order import Order, OrderLot
from warehouse_audit.models.profile import Profile
from warehouse_audit.models.supplier import Supplier


ENTITY_MODELS: dict[str, type[Base]] = {
    "lot": Lot,
    "roll": Roll,
    "order": Order,
    "order_lot": OrderLot,
    "supplier": Supplier,
    "profile": Profile,
    "incoming_stock": IncomingStock,
    "goods_in_receipt": GoodsInReceipt,
    "goods_in_row": GoodsInRow,
}

# Entity types whose creation spans several tables and needs
# the goods-in cascade to undo.
COMPOSITE_ENTITY_TYPES = frozenset({"lot"})


def resolve(entity_type: str) -> type[Base]:
    """Return the model class for an entity type."""
    try:
        return ENTITY_MODELS[entity_type]
    except KeyError:
        raise UnknownEntityType(
            f"No table is registered for entity type '{entity_type}'",
            details={"entity_type": entity_type},
        ) from None


def is_composite(entity_type: str) -> bool:
    return entity_type in COMPOSITE_ENTITY_TYPES
