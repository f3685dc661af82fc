"""
Tests for reversal API endpoints.

These test the HTTP layer: authorization, status codes, the error
payload and the correlation id. Business logic is tested in
test_reversal_service.py and test_executor.py.
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from warehouse_audit.main import app
from warehouse_audit.models import AuditLogEntry, IncomingStock, Lot


class TestAuthorization:

    def test_missing_credential_returns_401(self, client, received_lot):
        response = client.post("/reversals", json={"audit_id": received_lot.id})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"

    def test_bad_token_returns_401(self, client, received_lot):
        response = client.post(
            "/reversals",
            json={"audit_id": received_lot.id},
            headers={"Authorization": "Bearer wrong"},
        )
        assert response.status_code == 401

    def test_non_admin_returns_403(self, client, staff_headers, received_lot):
        response = client.post(
            "/reversals", json={"audit_id": received_lot.id}, headers=staff_headers
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    def test_forbidden_caller_changes_nothing(
        self, client, db_session, staff_headers, received_lot
    ):
        entries_before = db_session.query(AuditLogEntry).count()

        client.post(
            "/reversals", json={"audit_id": received_lot.id}, headers=staff_headers
        )
        db_session.expire_all()

        assert db_session.query(AuditLogEntry).count() == entries_before
        assert db_session.get(Lot, "L1") is not None
        assert db_session.get(IncomingStock, "S1").received_meters == Decimal("300")
        assert db_session.get(AuditLogEntry, received_lot.id).is_reversed is False


class TestReverseAction:

    def test_success_payload(self, client, admin_headers, received_lot):
        response = client.post(
            "/reversals",
            json={"audit_id": received_lot.id, "reason": "Wrong lot"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["strategy"] == "DELETE"
        assert data["repaired"] is False
        assert data["reversal_audit_id"]
        assert data["correlation_id"] == response.headers["X-Correlation-ID"]

    def test_success_is_committed(self, client, db_session, admin_headers, received_lot):
        response = client.post(
            "/reversals", json={"audit_id": received_lot.id}, headers=admin_headers
        )
        db_session.expire_all()

        original = db_session.get(AuditLogEntry, received_lot.id)
        assert original.is_reversed is True
        assert original.reversal_audit_id == response.json()["reversal_audit_id"]
        assert db_session.get(Lot, "L1") is None

    def test_unknown_entry_returns_404(self, client, admin_headers):
        response = client.post(
            "/reversals", json={"audit_id": "missing"}, headers=admin_headers
        )

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "NotFound"
        assert data["details"] == {"audit_id": "missing"}

    def test_already_reversed_returns_409(self, client, admin_headers, received_lot):
        client.post(
            "/reversals", json={"audit_id": received_lot.id}, headers=admin_headers
        )
        response = client.post(
            "/reversals", json={"audit_id": received_lot.id}, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["error"] == "CannotReverse"

    def test_unknown_entity_type_returns_400(self, client, admin_headers, make_entry):
        entry = make_entry("CREATE", "warehouse", "W1", new_data={"name": "Main"})

        response = client.post(
            "/reversals", json={"audit_id": entry.id}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "UnknownEntityType"

    def test_failed_step_is_reported_and_rolled_back(
        self, client, db_session, admin_headers, make_entry
    ):
        entry = make_entry("UPDATE", "supplier", "SUP404",
                           old_data={"name": "Acme"}, new_data={"name": "Acme Corp"})

        response = client.post(
            "/reversals", json={"audit_id": entry.id}, headers=admin_headers
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "DbError"
        assert data["step"] == "revert_entity"
        db_session.expire_all()
        assert db_session.get(AuditLogEntry, entry.id).is_reversed is False

    def test_bad_snapshot_returns_structured_error(
        self, client, db_session, admin_headers, make_entry
    ):
        db_session.add(IncomingStock(id="S9", quality="Linen",
                                     expected_meters=Decimal("10"),
                                     received_meters=Decimal("10")))
        db_session.commit()
        entry = make_entry("STATUS_CHANGE", "incoming_stock", "S9",
                           old_data={"status": "archived"},
                           new_data={"status": "fully_received"})

        response = client.post(
            "/reversals", json={"audit_id": entry.id}, headers=admin_headers
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "DbError"
        assert data["step"] == "revert_entity"
        assert data["correlation_id"] == response.headers["X-Correlation-ID"]

    def test_unexpected_failure_returns_structured_error(
        self, client, admin_headers, monkeypatch
    ):
        class CrashingService:
            def __init__(self, db):
                pass

            def reverse(self, audit_id, actor, reason):
                raise RuntimeError("boom")

        monkeypatch.setattr(
            "warehouse_audit.api.reversals.ReversalService", CrashingService
        )
        crash_client = TestClient(app, raise_server_exceptions=False)

        response = crash_client.post(
            "/reversals", json={"audit_id": "any"}, headers=admin_headers
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "ReversalError"
        assert data["reason"] == "Unexpected internal error"
        assert data["correlation_id"]
        assert data["correlation_id"] == response.headers["X-Correlation-ID"]

    def test_malformed_body_returns_422(self, client, admin_headers):
        response = client.post("/reversals", json={}, headers=admin_headers)

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "ValidationFailed"
        assert data["correlation_id"] == response.headers["X-Correlation-ID"]

    def test_error_shape_is_documented(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        responses = paths["/reversals"]["post"]["responses"]

        for status in ("401", "403", "404", "409", "500"):
            schema = responses[status]["content"]["application/json"]["schema"]
            assert schema["$ref"].endswith("/ErrorResponse")

    def test_each_request_gets_its_own_correlation_id(self, client):
        first = client.get("/health").headers["X-Correlation-ID"]
        second = client.get("/health").headers["X-Correlation-ID"]

        assert first != second


class TestReversibility:

    def test_reversible_entry(self, client, admin_headers, received_lot):
        response = client.get(
            f"/audit-logs/{received_lot.id}/reversibility", headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["can_reverse"] is True
        assert data["strategy"] == "DELETE"
        assert data["reason"] is None

    def test_reversed_entry(self, client, admin_headers, received_lot):
        client.post(
            "/reversals", json={"audit_id": received_lot.id}, headers=admin_headers
        )
        response = client.get(
            f"/audit-logs/{received_lot.id}/reversibility", headers=admin_headers
        )

        data = response.json()
        assert data["can_reverse"] is False
        assert data["reason"] == "Action already reversed"
        assert data["repairable"] is False

    def test_requires_admin(self, client, staff_headers, received_lot):
        response = client.get(
            f"/audit-logs/{received_lot.id}/reversibility", headers=staff_headers
        )
        assert response.status_code == 403
