"""
Tests for the LedgerWriter.

The link step is a conditional update: only one caller can move
an entry from not-reversed to reversed.
"""

import pytest

from warehouse_audit.errors import CannotReverse, NotFound
from warehouse_audit.models import AuditAction, AuditLogEntry
from warehouse_audit.schemas.audit import AuditEntryCreate
from warehouse_audit.services.ledger_writer import LedgerWriter, diff_fields


class TestDiffFields:

    def test_changed_keys_sorted(self):
        old = {"name": "Acme", "color": "Navy", "meters": 10}
        new = {"name": "Acme", "color": "Black", "meters": 12}
        assert diff_fields(old, new) == ["color", "meters"]

    def test_added_and_removed_keys(self):
        assert diff_fields({"a": 1}, {"b": 2}) == ["a", "b"]

    def test_missing_snapshot(self):
        assert diff_fields(None, {"a": 1}) is None


class TestAppend:

    def test_append_denormalizes_actor(self, db_session, admin):
        writer = LedgerWriter(db_session)
        entry = writer.append(
            AuditEntryCreate(
                action=AuditAction.CREATE,
                entity_type="supplier",
                entity_id="SUP1",
                entity_identifier="Acme",
                new_data={"name": "Acme"},
            ),
            admin,
        )
        db_session.commit()

        stored = db_session.get(AuditLogEntry, entry.id)
        assert stored.user_id == admin.user_id
        assert stored.user_email == admin.email
        assert stored.user_role == admin.role
        assert stored.is_reversed is False
        assert stored.created_at is not None

    def test_update_derives_changed_fields(self, db_session, admin):
        entry = LedgerWriter(db_session).append(
            AuditEntryCreate(
                action=AuditAction.UPDATE,
                entity_type="supplier",
                entity_id="SUP1",
                entity_identifier="Acme",
                old_data={"name": "Acme", "is_active": True},
                new_data={"name": "Acme Corp", "is_active": True},
            ),
            admin,
        )
        assert entry.changed_fields == ["name"]

    def test_explicit_changed_fields_kept(self, db_session, admin):
        entry = LedgerWriter(db_session).append(
            AuditEntryCreate(
                action=AuditAction.UPDATE,
                entity_type="supplier",
                entity_id="SUP1",
                entity_identifier="Acme",
                old_data={"name": "Acme"},
                new_data={"name": "Acme Corp"},
                changed_fields=["name", "contact_email"],
            ),
            admin,
        )
        assert entry.changed_fields == ["name", "contact_email"]

    def test_get_missing(self, db_session):
        with pytest.raises(NotFound):
            LedgerWriter(db_session).get("missing")


class TestLink:

    def test_link_sets_tracking_fields(self, db_session, admin, make_entry):
        entry = make_entry("CREATE", "supplier", "SUP1", new_data={"name": "Acme"})

        LedgerWriter(db_session).link(entry, "comp-1", admin, "Typo")
        db_session.commit()

        stored = db_session.get(AuditLogEntry, entry.id)
        assert stored.is_reversed is True
        assert stored.reversal_audit_id == "comp-1"
        assert stored.reversed_by == admin.user_id
        assert stored.reversal_reason == "Typo"

    def test_second_link_loses(self, db_session, admin, make_entry):
        entry = make_entry("CREATE", "supplier", "SUP1", new_data={"name": "Acme"})
        writer = LedgerWriter(db_session)
        writer.link(entry, "comp-1", admin, "First")
        db_session.commit()

        with pytest.raises(CannotReverse, match="concurrent"):
            writer.link(entry, "comp-2", admin, "Second")
        db_session.rollback()

        assert db_session.get(AuditLogEntry, entry.id).reversal_audit_id == "comp-1"

    def test_repair_link_replaces_stale_pointer(self, db_session, admin, make_entry):
        entry = make_entry("CREATE", "supplier", "SUP1", new_data={"name": "Acme"},
                           is_reversed=True, reversal_audit_id="stale")

        LedgerWriter(db_session).link(entry, "comp-2", admin, "Repair", repair=True)
        db_session.commit()

        assert db_session.get(AuditLogEntry, entry.id).reversal_audit_id == "comp-2"

    def test_repair_link_requires_observed_pointer(
        self, db_session, admin, make_entry
    ):
        entry = make_entry("CREATE", "supplier", "SUP1", new_data={"name": "Acme"},
                           is_reversed=True, reversal_audit_id="stale")
        writer = LedgerWriter(db_session)
        writer.link(entry, "comp-2", admin, "Repair", repair=True)
        db_session.commit()

        stale_view = AuditLogEntry(id=entry.id, reversal_audit_id="stale")
        with pytest.raises(CannotReverse):
            writer.link(stale_view, "comp-3", admin, "Repair again", repair=True)
