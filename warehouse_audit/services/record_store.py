"""
Generic record store over domain tables.

The reversal engine works from JSON snapshots stored in the
ledger, not from typed requests. This store reads and writes any
resolved model by primary key and converts between live rows and
snapshots in both directions.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import DateTime, Date, Numeric, Enum as SAEnum, inspect
from sqlalchemy.orm import Session

from warehouse_audit.models.base import Base


def to_snapshot(record: Base) -> dict[str, Any]:
    """Serialize a row into the JSON shape stored in the ledger."""
    snapshot: dict[str, Any] = {}
    for column in inspect(type(record)).columns:
        value = getattr(record, column.key)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, Enum):
            value = value.value
        snapshot[column.key] = value
    return snapshot


def from_snapshot(model: type[Base], data: dict[str, Any]) -> dict[str, Any]:
    """
    Convert a snapshot back into column values for a model.

    Keys that are not columns of the model are dropped: snapshots
    may carry denormalized extras (e.g. incoming_stock_id on a lot).
    """
    columns = {c.key: c for c in inspect(model).columns}
    values: dict[str, Any] = {}
    for key, value in data.items():
        column = columns.get(key)
        if column is None:
            continue
        if value is not None:
            if isinstance(column.type, DateTime) and isinstance(value, str):
                value = datetime.fromisoformat(value)
            elif isinstance(column.type, Date) and isinstance(value, str):
                value = date.fromisoformat(value)
            elif isinstance(column.type, Numeric):
                value = Decimal(str(value))
            elif isinstance(column.type, SAEnum) and column.type.enum_class:
                value = column.type.enum_class(value)
        values[key] = value
    return values


class RecordStore:
    """
    Get / insert / update / delete by model and primary key.

    Like the other services, the store only flushes. The caller
    owns the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, model: type[Base], record_id: str) -> Base | None:
        return self.db.get(model, record_id)

    def exists(self, model: type[Base], record_id: str) -> bool:
        return self.get(model, record_id) is not None

    def insert(self, model: type[Base], data: dict[str, Any]) -> Base:
        """Insert a row using the snapshot verbatim, id included."""
        record = model(**from_snapshot(model, data))
        self.db.add(record)
        self.db.flush()
        return record

    def overwrite(
        self, model: type[Base], record_id: str, data: dict[str, Any]
    ) -> Base | None:
        """
        Set every column named in the snapshot to its value.

        Columns not named in the snapshot are left alone. The
        primary key is never rewritten. Returns None if the row
        does not exist.
        """
        record = self.get(model, record_id)
        if record is None:
            return None
        primary_keys = {c.key for c in inspect(model).primary_key}
        for key, value in from_snapshot(model, data).items():
            if key in primary_keys:
                continue
            setattr(record, key, value)
        self.db.flush()
        return record

    def delete(self, model: type[Base], record_id: str) -> bool:
        """Delete a row. Returns False if it was already gone."""
        record = self.get(model, record_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True
