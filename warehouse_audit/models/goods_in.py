"""
Goods-in models.

A receipt is one batch of goods received against an incoming
stock record. Each goods-in row links a lot (and optionally one of
its rolls) to the receipt it arrived in. A receipt with no rows
left is meaningless and is removed by the reversal cascade.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_audit.models.base import Base, new_id


class GoodsInReceipt(Base):
    __tablename__ = "goods_in_receipts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    incoming_stock_id: Mapped[str | None] = mapped_column(
        ForeignKey("incoming_stock.id"), nullable=True, index=True
    )
    received_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<GoodsInReceipt {self.id} -> {self.incoming_stock_id}>"


class GoodsInRow(Base):
    __tablename__ = "goods_in_rows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    receipt_id: Mapped[str] = mapped_column(
        ForeignKey("goods_in_receipts.id"), nullable=False, index=True
    )
    lot_id: Mapped[str] = mapped_column(
        ForeignKey("lots.id"), nullable=False, index=True
    )
    roll_id: Mapped[str | None] = mapped_column(
        ForeignKey("rolls.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<GoodsInRow lot={self.lot_id} receipt={self.receipt_id}>"
