"""
Incoming stock model.

An incoming stock record is an expected delivery from a supplier.
Goods-in receipts register what actually arrived against it, and
received_meters is the running total of everything received so far.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_audit.models.base import Base, new_id
from warehouse_audit.models.enums import StockStatus


def status_for(received: Decimal, expected: Decimal) -> StockStatus:
    """
    Derive the receiving status from the two running totals.

    Nothing received is always pending, even against a zero
    expectation.
    """
    if received <= 0:
        return StockStatus.PENDING
    if received >= expected:
        return StockStatus.FULLY_RECEIVED
    return StockStatus.PARTIALLY_RECEIVED


class IncomingStock(Base):
    __tablename__ = "incoming_stock"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    supplier_id: Mapped[str | None] = mapped_column(
        ForeignKey("suppliers.id"), nullable=True, index=True
    )
    quality: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(100), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expected_meters: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    received_meters: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    status: Mapped[StockStatus] = mapped_column(
        SAEnum(
            StockStatus,
            name="stock_status_enum",
            create_constraint=True,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=StockStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def decrement_received(self, meters: Decimal) -> None:
        """Remove a contribution, never going below zero."""
        remaining = Decimal(str(self.received_meters)) - Decimal(str(meters))
        self.received_meters = max(Decimal("0"), remaining)
        self.status = status_for(
            self.received_meters, Decimal(str(self.expected_meters))
        )

    def __repr__(self) -> str:
        return (
            f"<IncomingStock {self.quality} "
            f"{self.received_meters}/{self.expected_meters} ({self.status.value})>"
        )
