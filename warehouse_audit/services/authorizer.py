"""
Reversal authorizer.

Resolves a bearer credential to an actor in two lookups:
identity (token to user id) and profile (user id to role, email
and name). Reversals additionally require the admin role.
Nothing here writes to the database.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse_audit.config import get_settings
from warehouse_audit.errors import Unauthorized, Forbidden
from warehouse_audit.logging import get_logger
from warehouse_audit.models.profile import AccessToken, Profile
from warehouse_audit.schemas.audit import Actor

logger = get_logger(__name__)


def extract_bearer(credential: str | None) -> str | None:
    """Strip the "Bearer " scheme from an Authorization header value."""
    if not credential:
        return None
    scheme, _, token = credential.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class TokenIdentityLookup:
    """Identity lookup backed by the access_tokens table."""

    def __init__(self, db: Session):
        self.db = db

    def __call__(self, token: str) -> str | None:
        access = self.db.get(AccessToken, token)
        if access is None:
            return None
        if access.expires_at is not None and access.expires_at <= datetime.utcnow():
            return None
        return access.user_id


class ReversalAuthorizer:

    def __init__(self, db: Session, identity_lookup=None):
        self.db = db
        self.identity_lookup = identity_lookup or TokenIdentityLookup(db)
        self.admin_role = get_settings().ADMIN_ROLE

    def _lookup_profile(self, user_id: str) -> Profile | None:
        return self.db.execute(
            select(Profile).where(Profile.user_id == user_id)
        ).scalar_one_or_none()

    def authenticate(self, credential: str | None) -> Actor:
        """
        Resolve a credential to an actor.

        Raises Unauthorized for a missing, malformed, unknown or
        expired credential, or a user without a profile.
        """
        token = extract_bearer(credential)
        if token is None:
            raise Unauthorized("Missing or malformed bearer credential")

        user_id = self.identity_lookup(token)
        if user_id is None:
            raise Unauthorized("Invalid or expired credential")

        profile = self._lookup_profile(user_id)
        if profile is None:
            raise Unauthorized(
                "No profile found for authenticated user",
                details={"user_id": user_id},
            )

        return Actor(
            user_id=user_id,
            email=profile.email,
            role=profile.role,
            full_name=profile.full_name,
        )

    def authorize(self, credential: str | None) -> Actor:
        """Resolve a credential and require the admin role."""
        actor = self.authenticate(credential)
        if actor.role != self.admin_role:
            logger.warning(
                "reversal_forbidden", user_id=actor.user_id, role=actor.role
            )
            raise Forbidden(
                "Admin access required",
                details={"role": actor.role},
            )
        return actor
