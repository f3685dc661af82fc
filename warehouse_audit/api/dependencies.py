"""
Shared FastAPI dependencies: caller identity and correlation id.
"""

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from warehouse_audit.models.base import get_db
from warehouse_audit.schemas.audit import Actor
from warehouse_audit.schemas.reversal import ErrorResponse
from warehouse_audit.services.authorizer import ReversalAuthorizer

# Documented on every router that can fail with a ReversalError
ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 422, 500)
}


def correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


def current_actor(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> Actor:
    """Any authenticated user."""
    return ReversalAuthorizer(db).authenticate(authorization)


def admin_actor(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> Actor:
    """An authenticated user with the admin role."""
    return ReversalAuthorizer(db).authorize(authorization)
