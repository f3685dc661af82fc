"""
Tests for the ReversalAuthorizer.
"""

from datetime import datetime, timedelta

import pytest

from warehouse_audit.errors import Forbidden, Unauthorized
from warehouse_audit.models import AccessToken
from warehouse_audit.services.authorizer import ReversalAuthorizer, extract_bearer

ADMIN_TOKEN = "admin-token"
STAFF_TOKEN = "staff-token"


class TestExtractBearer:

    def test_valid(self):
        assert extract_bearer("Bearer abc123") == "abc123"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer("bearer abc123") == "abc123"

    @pytest.mark.parametrize("value", [None, "", "Bearer", "Bearer   ", "Basic abc"])
    def test_invalid(self, value):
        assert extract_bearer(value) is None


class TestAuthenticate:

    def test_resolves_profile(self, db_session, admin):
        actor = ReversalAuthorizer(db_session).authenticate(f"Bearer {ADMIN_TOKEN}")

        assert actor.user_id == admin.user_id
        assert actor.email == "admin@example.com"
        assert actor.role == "admin"

    def test_missing_credential(self, db_session):
        with pytest.raises(Unauthorized, match="Missing or malformed"):
            ReversalAuthorizer(db_session).authenticate(None)

    def test_unknown_token(self, db_session, admin):
        with pytest.raises(Unauthorized, match="Invalid or expired"):
            ReversalAuthorizer(db_session).authenticate("Bearer nope")

    def test_expired_token(self, db_session, admin):
        db_session.add(AccessToken(
            token="old-token",
            user_id=admin.user_id,
            expires_at=datetime.utcnow() - timedelta(minutes=1),
        ))
        db_session.commit()

        with pytest.raises(Unauthorized, match="Invalid or expired"):
            ReversalAuthorizer(db_session).authenticate("Bearer old-token")

    def test_user_without_profile(self, db_session):
        db_session.add(AccessToken(token="orphan-token", user_id="ghost"))
        db_session.commit()

        with pytest.raises(Unauthorized, match="No profile"):
            ReversalAuthorizer(db_session).authenticate("Bearer orphan-token")

    def test_custom_identity_lookup(self, db_session, staff):
        authorizer = ReversalAuthorizer(
            db_session, identity_lookup=lambda token: staff.user_id
        )
        assert authorizer.authenticate("Bearer anything").user_id == staff.user_id


class TestAuthorize:

    def test_admin_allowed(self, db_session, admin):
        actor = ReversalAuthorizer(db_session).authorize(f"Bearer {ADMIN_TOKEN}")
        assert actor.role == "admin"

    def test_non_admin_forbidden(self, db_session, staff):
        with pytest.raises(Forbidden, match="Admin access required"):
            ReversalAuthorizer(db_session).authorize(f"Bearer {STAFF_TOKEN}")

    def test_unauthenticated_is_not_forbidden(self, db_session):
        with pytest.raises(Unauthorized):
            ReversalAuthorizer(db_session).authorize("Bearer nope")
