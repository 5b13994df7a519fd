"""Tests for demo data seeding."""
import random
from unittest.mock import patch

import pytest

from expenseflow.core.seed import DEMO_USERS, seed_demo_data
from expenseflow.db.store import InMemoryStore
from expenseflow.models import Approval, ApprovalRule, Expense, ExpenseStatus, User
from expenseflow.services.analytics import get_analytics
from expenseflow.services.queries import find_user_by_email


@pytest.fixture(autouse=True)
def fast_hash():
    with patch("expenseflow.core.seed.hash_password", side_effect=lambda pw: f"hashed:{pw}") as mock:
        yield mock


def test_seed_builds_demo_company(store, fast_hash):
    result = seed_demo_data(store, random.Random(1), expense_count=12)

    assert result["created"] is True
    assert store.count(User) == len(DEMO_USERS)
    assert store.count(Expense) == 12
    assert store.count(ApprovalRule) == 1
    # one hash per distinct password
    assert fast_hash.call_count == len({user[3] for user in DEMO_USERS})

    employee = find_user_by_email(store, "john@demo.com")
    assert employee.manager.email == "manager@demo.com"
    assert get_analytics(store, result["company_id"]).expense_count == 12


def test_seeded_expenses_have_consistent_status(store):
    seed_demo_data(store, random.Random(7), expense_count=30)

    for expense in store.list_all(Expense):
        steps = store.query(Approval, lambda a, eid=expense.id: a.expense_id == eid)
        assert len(steps) == 1
        expected = {
            "PENDING": ExpenseStatus.PENDING,
            "APPROVED": ExpenseStatus.APPROVED,
            "REJECTED": ExpenseStatus.REJECTED,
        }[steps[0].status.value]
        assert expense.status == expected


def test_seed_is_idempotent(store):
    first = seed_demo_data(store, random.Random(1), expense_count=5)
    second = seed_demo_data(store, random.Random(1), expense_count=5)

    assert second == {"company_id": first["company_id"], "created": False}
    assert store.count(Expense) == 5


def test_seed_is_deterministic_for_a_given_rng():
    a, b = InMemoryStore(), InMemoryStore()
    seed_demo_data(a, random.Random(3), expense_count=8)
    seed_demo_data(b, random.Random(3), expense_count=8)

    def fingerprint(store):
        return sorted((e.amount, e.category, e.status.value) for e in store.list_all(Expense))

    assert fingerprint(a) == fingerprint(b)
