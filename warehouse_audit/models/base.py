"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().
"""

import uuid

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from warehouse_audit.config import get_settings

settings = get_settings()

# --- Engine ---
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
)

# --- Session Factory ---
# autocommit=False: a whole reversal, cascade included, is one
# transaction that the API layer commits or rolls back.
# autoflush=False: SQL is only sent on an explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    """Primary keys are opaque UUID strings shared with the host app."""
    return str(uuid.uuid4())


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The API handlers commit or roll back; this only closes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
