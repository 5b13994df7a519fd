"""Shared fixtures: a fresh in-memory store and a small company to work in."""
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

import pytest

from expenseflow.db.base import utcnow
from expenseflow.db.store import InMemoryStore
from expenseflow.models import ApprovalRule, Company, User, UserRole

FAKE_HASH = "not-a-real-hash"


@dataclass
class World:
    store: InMemoryStore
    company: Company
    admin: User
    manager: User
    finance: User
    employee: User

    def add_rule(self, manager_first: bool = True, sequential_approvers: list[str] | None = None, **extra) -> ApprovalRule:
        return self.store.create(
            ApprovalRule,
            {
                "company_id": self.company.id,
                "name": extra.pop("name", "Test Rule"),
                "manager_first": manager_first,
                "sequential_approvers": sequential_approvers or [],
                **extra,
            },
        )

    def expense_payload(self, amount: str = "100", **overrides) -> dict:
        payload = {
            "amount": Decimal(amount),
            "currency": "USD",
            "category": "Travel",
            "description": "Taxi to airport",
            "vendor": "Yellow Cab",
            "expense_date": utcnow() - timedelta(days=1),
        }
        payload.update(overrides)
        return payload


def _make_user(store: InMemoryStore, company: Company, email: str, role: UserRole, manager: User | None = None) -> User:
    return store.create(
        User,
        {
            "email": email,
            "password_hash": FAKE_HASH,
            "full_name": email.split("@")[0].title(),
            "role": role,
            "company_id": company.id,
            "manager_id": manager.id if manager else None,
        },
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def world(store: InMemoryStore) -> World:
    company = store.create(Company, {"name": "Acme", "country": "United States", "base_currency": "USD"})
    admin = _make_user(store, company, "admin@acme.io", UserRole.ADMIN)
    manager = _make_user(store, company, "manager@acme.io", UserRole.MANAGER, admin)
    finance = _make_user(store, company, "finance@acme.io", UserRole.MANAGER, admin)
    employee = _make_user(store, company, "employee@acme.io", UserRole.EMPLOYEE, manager)
    return World(store=store, company=company, admin=admin, manager=manager, finance=finance, employee=employee)


@pytest.fixture
def make_user(store: InMemoryStore):
    def _factory(company: Company, email: str, role: UserRole = UserRole.EMPLOYEE, manager: User | None = None) -> User:
        return _make_user(store, company, email, role, manager)
    return _factory
