from typing import Any

from expenseflow.db.base import Record


class AuditLog(Record):
    """Immutable audit trail for state transitions and decisions."""

    action: str
    entity_type: str
    entity_id: str | None = None
    actor_id: str | None = None
    before_state: dict[str, Any] | None = None
    after_state: dict[str, Any] | None = None
    notes: str | None = None
