"""Entity store.

``Repository`` is the interface every service talks to; ``InMemoryStore`` is
the process-memory implementation, one ``id → record`` map per entity kind.
Swapping to a persistent backend means writing another ``Repository``.
"""
import abc
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from expenseflow.core.errors import InvalidStateError, NotFoundError, ValidationError
from expenseflow.db.base import Record, utcnow, validation_message
from expenseflow.models import (
    Approval,
    ApprovalRule,
    AuditLog,
    Company,
    Expense,
    ExpenseStatus,
    User,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

BatchData = dict[str, Any] | Callable[[list[Record]], dict[str, Any]]

ENTITY_KINDS: tuple[type[Record], ...] = (Company, User, Expense, Approval, ApprovalRule, AuditLog)


class Repository(abc.ABC):
    """Create/read/update/query primitives over the entity kinds."""

    @abc.abstractmethod
    def create(self, kind: type[R], data: dict[str, Any]) -> R: ...

    @abc.abstractmethod
    def get(self, kind: type[R], record_id: str) -> R: ...

    @abc.abstractmethod
    def find(self, kind: type[R], record_id: str | None) -> R | None: ...

    @abc.abstractmethod
    def update_by_id(self, kind: type[R], record_id: str, patch: dict[str, Any]) -> R: ...

    @abc.abstractmethod
    def soft_delete(self, kind: type[R], record_id: str) -> R: ...

    @abc.abstractmethod
    def list_all(self, kind: type[R]) -> list[R]: ...

    @abc.abstractmethod
    def count(self, kind: type[Record]) -> int: ...

    @abc.abstractmethod
    def lock(self, key: str) -> Any: ...

    @abc.abstractmethod
    def reset(self) -> None: ...

    def query(self, kind: type[R], predicate: Callable[[R], bool]) -> list[R]:
        """Records of ``kind`` matching ``predicate``, in insertion order."""
        return [record for record in self.list_all(kind) if predicate(record)]

    def first(self, kind: type[R], predicate: Callable[[R], bool]) -> R | None:
        for record in self.list_all(kind):
            if predicate(record):
                return record
        return None

    def run_batch(self, operations: list[tuple[type[Record], BatchData]]) -> list[Record]:
        """Run a sequence of creates and return their results together.

        ``data`` may be a callable receiving the records created so far, so a
        later create can reference an earlier one's id.

        Best effort only: a failure part-way leaves earlier creates in place.
        There is no atomic multi-entity commit.
        """
        results: list[Record] = []
        for kind, data in operations:
            payload = data(results) if callable(data) else data
            results.append(self.create(kind, payload))
        return results

    def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": utcnow().isoformat(),
            "users": self.count(User),
            "companies": self.count(Company),
            "expenses": self.count(Expense),
            "approvals": self.count(Approval),
        }


class InMemoryStore(Repository):
    """Arena-style storage: a dict per kind, insertion-ordered."""

    def __init__(self) -> None:
        self._tables: dict[type[Record], dict[str, Record]] = {kind: {} for kind in ENTITY_KINDS}
        # key -> [lock, number of holders and waiters]
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    def _table(self, kind: type[R]) -> dict[str, R]:
        try:
            return self._tables[kind]  # type: ignore[return-value]
        except KeyError:
            raise ValidationError(f"Unknown entity kind {kind.__name__}") from None

    def create(self, kind: type[R], data: dict[str, Any]) -> R:
        table = self._table(kind)
        payload = {k: v for k, v in data.items() if k not in ("id", "created_at", "updated_at")}
        try:
            record = kind.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(validation_message(kind, exc)) from exc
        record.updated_at = record.created_at
        table[record.id] = record
        logger.debug("Created %s %s", kind.__name__, record.id)
        return record

    def get(self, kind: type[R], record_id: str) -> R:
        record = self._table(kind).get(record_id)
        if record is None:
            raise NotFoundError(f"{kind.__name__} {record_id} not found")
        return record

    def find(self, kind: type[R], record_id: str | None) -> R | None:
        if record_id is None:
            return None
        return self._table(kind).get(record_id)

    def update_by_id(self, kind: type[R], record_id: str, patch: dict[str, Any]) -> R:
        table = self._table(kind)
        current = self.get(kind, record_id)
        unknown = set(patch) - set(kind.model_fields)
        if unknown:
            raise ValidationError(f"Unknown {kind.__name__} fields: {', '.join(sorted(unknown))}")
        merged = {
            **current.model_dump(),
            **patch,
            "id": current.id,
            "created_at": current.created_at,
            "updated_at": utcnow(),
        }
        try:
            updated = kind.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError(validation_message(kind, exc)) from exc
        table[record_id] = updated
        return updated

    def soft_delete(self, kind: type[R], record_id: str) -> R:
        if kind is User:
            return self.update_by_id(kind, record_id, {"is_active": False})
        if kind is Expense:
            return self.update_by_id(kind, record_id, {"status": ExpenseStatus.DELETED})
        raise InvalidStateError(f"{kind.__name__} records cannot be soft-deleted")

    def list_all(self, kind: type[R]) -> list[R]:
        return list(self._table(kind).values())

    def count(self, kind: type[Record]) -> int:
        return len(self._table(kind))

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """Serialise read-decide-write sequences on one key (e.g. an expense id).

        A key's lock is dropped once nobody holds or waits on it.
        """
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.RLock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0 and self._locks.get(key) is entry:
                    del self._locks[key]

    def reset(self) -> None:
        for table in self._tables.values():
            table.clear()
        with self._locks_guard:
            self._locks.clear()


@lru_cache
def get_store() -> InMemoryStore:
    return InMemoryStore()
