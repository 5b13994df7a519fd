"""Audit log helper: append-only writes to the audit trail."""
import logging
from typing import Any

from expenseflow.db.store import Repository
from expenseflow.models import AuditLog

logger = logging.getLogger(__name__)


def log(
    store: Repository,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    actor_id: str | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Write a single audit log entry.

    Args:
        action: Short verb, e.g. 'expense_created', 'approval_decided'.
        entity_type: Domain name, e.g. 'expense', 'approval'.
        entity_id: Id of the affected record.
        actor_id: User who performed the action (None for system actions).
        before: Snapshot of state before the action.
        after: Snapshot of state after the action.
        notes: Free-text annotation.
    """
    entry = store.create(
        AuditLog,
        {
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "actor_id": actor_id,
            "before_state": before,
            "after_state": after,
            "notes": notes,
        },
    )
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry


def entries_for(store: Repository, entity_id: str) -> list[AuditLog]:
    """Audit entries for one entity, oldest first."""
    return store.query(AuditLog, lambda e: e.entity_id == entity_id)
