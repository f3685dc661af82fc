"""
Lot and roll models.

A lot is a quantity of one fabric quality received together.
It is physically made of rolls; each roll carries its own
measured length, and the rolls together make up the lot.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from warehouse_audit.models.base import Base, new_id


class Lot(Base):
    __tablename__ = "lots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    lot_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    quality: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(100), nullable=False)
    meters: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    roll_count: Mapped[int] = mapped_column(nullable=False, default=0)
    supplier_id: Mapped[str | None] = mapped_column(
        ForeignKey("suppliers.id"), nullable=True, index=True
    )
    warehouse_location: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="in_stock"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Lot {self.lot_number} {self.meters}m>"


class Roll(Base):
    __tablename__ = "rolls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    lot_id: Mapped[str] = mapped_column(
        ForeignKey("lots.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False, default=1)
    meters: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="available"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Roll {self.position} of {self.lot_id} {self.meters}m>"
