"""Admin audit trail.

Every successful back-office mutation of an order leaves an ``AuditEntry``
behind. Audit entries are written after the order change has committed, in
their own unit of work: a failure to write one is logged and never undoes or
fails the change it describes.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering


@ordering.aggregate
class AuditEntry:
    admin_id = String(required=True, max_length=255)
    action = String(required=True, max_length=50)  # e.g. ORDER_STATUS_CHANGED
    entity_type = String(required=True, max_length=50)
    entity_id = Identifier(required=True)
    changes = Text()  # JSON: {"before": ..., "after": ...}
    description = String(max_length=500)
    ip_address = String(max_length=64)
    user_agent = String(max_length=500)
    created_at = DateTime()

    @property
    def change_set(self):
        return json.loads(self.changes) if self.changes else {}


def record_admin_action(
    admin_id,
    action,
    entity_id,
    before=None,
    after=None,
    entity_type="Order",
    description=None,
    ip_address=None,
    user_agent=None,
):
    """Persist an audit entry, returning it, or None if it could not be written."""
    try:
        entry = AuditEntry(
            admin_id=str(admin_id),
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            changes=json.dumps({"before": before, "after": after}, default=str),
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(AuditEntry).add(entry)
    except (ValidationError, InvalidOperationError) as exc:
        logger.warning(
            "audit_write_failed",
            admin_id=str(admin_id),
            action=action,
            entity_id=str(entity_id),
            error=str(exc),
        )
        return None

    return entry


def entries_for(entity_id):
    """Audit entries recorded against one entity, oldest first."""
    results = (
        current_domain.repository_for(AuditEntry)
        ._dao.query.filter(entity_id=str(entity_id))
        .order_by("created_at")
        .all()
    )
    return results.items
