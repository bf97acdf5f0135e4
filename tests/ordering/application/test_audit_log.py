"""Application tests for the admin audit trail."""

from unittest.mock import MagicMock, patch

from ordering.audit.audit_log import AuditEntry, entries_for, record_admin_action
from protean import current_domain
from protean.exceptions import ValidationError


class TestRecordAdminAction:
    def test_entry_persisted(self):
        entry = record_admin_action(
            "admin-1",
            "ORDER_STATUS_CHANGED",
            "ord-001",
            before={"status": "PENDING_CONFIRMATION"},
            after={"status": "CONFIRMED"},
            ip_address="10.0.0.5",
        )

        stored = current_domain.repository_for(AuditEntry).get(entry.id)
        assert stored.action == "ORDER_STATUS_CHANGED"
        assert stored.entity_type == "Order"
        assert stored.change_set == {
            "before": {"status": "PENDING_CONFIRMATION"},
            "after": {"status": "CONFIRMED"},
        }

    def test_entries_for_entity(self):
        record_admin_action("admin-1", "ORDER_STATUS_CHANGED", "ord-001")
        record_admin_action("admin-1", "ORDER_NOTES_UPDATED", "ord-001")
        record_admin_action("admin-1", "ORDER_NOTES_UPDATED", "ord-002")

        assert [entry.action for entry in entries_for("ord-001")] == [
            "ORDER_STATUS_CHANGED",
            "ORDER_NOTES_UPDATED",
        ]

    def test_write_failure_is_swallowed(self):
        with patch("ordering.audit.audit_log.current_domain", new_callable=MagicMock) as mock_domain:
            mock_domain.repository_for.return_value.add.side_effect = ValidationError({"action": ["bad"]})
            entry = record_admin_action("admin-1", "ORDER_STATUS_CHANGED", "ord-001")

        assert entry is None
