"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so every test starts clean.
"""

import os

# Must be set before the application reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("LOG_FORMAT", "console")

from datetime import datetime, timedelta
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from warehouse_audit.main import app
from warehouse_audit.models import (
    AccessToken,
    AuditAction,
    AuditLogEntry,
    Base,
    GoodsInReceipt,
    GoodsInRow,
    IncomingStock,
    Lot,
    Profile,
    Roll,
    StockStatus,
)
from warehouse_audit.models.base import get_db
from warehouse_audit.schemas.audit import Actor


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

ADMIN_TOKEN = "admin-token"
STAFF_TOKEN = "staff-token"


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses
    the test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# --- Actors ---

def _make_user(db, user_id, email, role, token):
    db.add(Profile(user_id=user_id, email=email, role=role, full_name=email))
    db.add(AccessToken(token=token, user_id=user_id))
    db.commit()
    return Actor(user_id=user_id, email=email, role=role, full_name=email)


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "user-admin", "admin@example.com", "admin", ADMIN_TOKEN)


@pytest.fixture
def staff(db_session):
    return _make_user(
        db_session, "user-staff", "staff@example.com", "warehouse_staff", STAFF_TOKEN
    )


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def staff_headers(staff):
    return {"Authorization": f"Bearer {STAFF_TOKEN}"}


# --- Ledger entries ---

@pytest.fixture
def make_entry(db_session):
    """
    Write an audit entry directly, as a host-app write path would.

    Entries get strictly increasing created_at values so that
    "later" is unambiguous.
    """
    ticks = count()
    base_time = datetime(2026, 1, 1, 9, 0, 0)

    def _make(action, entity_type, entity_id, old_data=None, new_data=None, **extra):
        identifier = extra.pop("entity_identifier", f"{entity_type} {entity_id}")
        entry = AuditLogEntry(
            action=AuditAction(action),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_identifier=identifier,
            user_id="user-writer",
            user_email="writer@example.com",
            user_role="warehouse_staff",
            old_data=old_data,
            new_data=new_data,
            created_at=base_time + timedelta(minutes=next(ticks)),
            **extra,
        )
        db_session.add(entry)
        db_session.commit()
        return entry

    return _make


# --- Goods-in data ---

@pytest.fixture
def received_lot(db_session, make_entry):
    """
    A lot received through the goods-in flow.

    Lot L1 (100m) has two rolls of 60m and 40m. Each roll has one
    goods-in row under receipt B1, which was received against
    incoming stock S1 (300 of 500 meters received so far).
    """
    stock = IncomingStock(
        id="S1",
        quality="Cotton Twill",
        expected_meters=Decimal("500"),
        received_meters=Decimal("300"),
        status=StockStatus.PARTIALLY_RECEIVED,
    )
    lot = Lot(
        id="L1",
        lot_number="LOT-0001",
        quality="Cotton Twill",
        color="Navy",
        meters=Decimal("100"),
        roll_count=2,
    )
    rolls = [
        Roll(id="R1", lot_id="L1", position=1, meters=Decimal("60")),
        Roll(id="R2", lot_id="L1", position=2, meters=Decimal("40")),
    ]
    receipt = GoodsInReceipt(id="B1", incoming_stock_id="S1")
    rows = [
        GoodsInRow(id="G1", receipt_id="B1", lot_id="L1", roll_id="R1"),
        GoodsInRow(id="G2", receipt_id="B1", lot_id="L1", roll_id="R2"),
    ]
    db_session.add_all([stock, lot, *rolls, receipt, *rows])
    db_session.commit()

    entry = make_entry(
        "CREATE",
        "lot",
        "L1",
        new_data={"meters": 100, "incoming_stock_id": "S1", "lot_number": "LOT-0001"},
        entity_identifier="LOT-0001",
    )
    return entry
