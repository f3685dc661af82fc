"""
Named storage steps.

Every storage call a reversal makes runs inside a step. A failure
in the block is re-raised as DbError tagged with the step name, so
an operator can tell exactly how far a request got.
"""

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from warehouse_audit.errors import DbError
from warehouse_audit.logging import get_logger

logger = get_logger(__name__)

# Snapshots come from the ledger as plain JSON. A value that does not
# fit its column (unknown enum member, bad timestamp, non-numeric
# meters) fails while converting, before any SQL is sent.
SNAPSHOT_ERRORS = (ValueError, ArithmeticError)


@contextmanager
def db_step(name: str):
    """Tag any storage or snapshot failure inside the block."""
    logger.debug("reversal_step", step=name)
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("reversal_step_failed", step=name, error=str(e))
        raise DbError(name, f"Database error during {name}", str(e)) from e
    except SNAPSHOT_ERRORS as e:
        logger.error("reversal_step_bad_snapshot", step=name, error=str(e))
        raise DbError(name, f"Invalid snapshot data during {name}", str(e)) from e
