"""Tests for expense submission, owner edits and soft deletion."""
from datetime import timedelta
from decimal import Decimal

import pytest

from expenseflow.core.config import settings
from expenseflow.core.errors import InvalidStateError, NotAuthorizedError, NotFoundError, ValidationError
from expenseflow.db.base import utcnow
from expenseflow.models import ApprovalStatus, Expense, ExpenseStatus
from expenseflow.services import fx
from expenseflow.services.approval import record_decision
from expenseflow.services.audit import entries_for
from expenseflow.services.expenses import (
    create_expense,
    delete_expense,
    list_categories,
    update_expense,
)


def _submit(world, **overrides):
    return create_expense(world.store, world.expense_payload(**overrides), world.employee.id, world.company.id)


# ─── Submission ───────────────────────────────────────────────────────────────

def test_create_expense_is_pending_with_submitter(world):
    world.add_rule(manager_first=True)

    expense = _submit(world, currency="usd")

    assert expense.status == ExpenseStatus.PENDING
    assert expense.currency == "USD"
    assert expense.submitted_by.email == world.employee.email
    assert expense.converted_amount == Decimal("100")
    assert expense.base_currency == "USD"
    assert [e.action for e in entries_for(world.store, expense.id)] == ["expense_created"]


def test_create_expense_accepts_camel_case_payload(world):
    payload = {
        "amount": "42.50",
        "currency": "USD",
        "category": "Food & Dining",
        "description": "Team lunch",
        "expenseDate": (utcnow() - timedelta(days=2)).isoformat(),
        "ocrExtracted": True,
        "ocrConfidence": 0.92,
    }

    expense = create_expense(world.store, payload, world.employee.id, world.company.id)

    assert expense.amount == Decimal("42.50")
    assert expense.ocr_extracted is True


def test_foreign_currency_is_converted_to_company_base(world):
    expense = _submit(world, currency="EUR")

    expected, rate = fx.convert(Decimal("100"), "EUR", "USD")
    assert expense.exchange_rate == rate
    assert expense.converted_amount == expected
    assert expense.base_currency == "USD"


def test_unknown_currency_left_unconverted(world):
    expense = _submit(world, currency="XYZ")

    assert expense.converted_amount is None
    assert expense.exchange_rate is None


def test_supplied_conversion_is_kept(world):
    expense = _submit(world, currency="EUR", converted_amount=Decimal("111.11"), exchange_rate=Decimal("1.1111"))

    assert expense.converted_amount == Decimal("111.11")


def test_today_is_accepted_but_tomorrow_is_not(world):
    _submit(world, expense_date=utcnow())

    with pytest.raises(ValidationError, match="future"):
        _submit(world, expense_date=utcnow() + timedelta(days=2))


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": Decimal("0")},
        {"amount": Decimal("-5")},
        {"currency": "DOLLARS"},
        {"category": ""},
        {"description": ""},
        {"ocr_confidence": 1.5},
    ],
)
def test_create_expense_rejects_malformed_payload(world, overrides):
    with pytest.raises(ValidationError):
        _submit(world, **overrides)
    assert world.store.count(Expense) == 0


def test_create_expense_unknown_submitter_or_company(world):
    with pytest.raises(NotFoundError):
        create_expense(world.store, world.expense_payload(), "ghost", world.company.id)
    with pytest.raises(NotFoundError):
        create_expense(world.store, world.expense_payload(), world.employee.id, "no-such-company")


def test_inactive_submitter_cannot_submit(world):
    world.store.soft_delete(type(world.employee), world.employee.id)

    with pytest.raises(NotAuthorizedError):
        _submit(world)


# ─── Owner edits ──────────────────────────────────────────────────────────────

def test_update_expense_by_owner(world):
    expense = _submit(world)

    updated = update_expense(
        world.store, expense.id, world.employee.id, {"description": "Taxi home", "currency": "eur"},
    )

    assert updated.description == "Taxi home"
    assert updated.currency == "EUR"
    assert updated.amount == expense.amount


def test_update_amount_recomputes_conversion(world):
    expense = _submit(world, currency="EUR")
    assert expense.converted_amount == Decimal("108.00")

    updated = update_expense(world.store, expense.id, world.employee.id, {"amount": "1000"})

    expected, rate = fx.convert(Decimal("1000"), "EUR", "USD")
    assert updated.converted_amount == expected == Decimal("1080.00")
    assert updated.exchange_rate == rate


def test_update_currency_recomputes_conversion(world):
    expense = _submit(world, currency="EUR")

    to_usd = update_expense(world.store, expense.id, world.employee.id, {"currency": "usd"})
    assert (to_usd.converted_amount, to_usd.exchange_rate) == (Decimal("100"), Decimal("1"))

    unknown = update_expense(world.store, expense.id, world.employee.id, {"currency": "XYZ"})
    assert unknown.converted_amount is None
    assert unknown.exchange_rate is None


def test_update_expense_by_someone_else(world):
    expense = _submit(world)

    with pytest.raises(NotAuthorizedError):
        update_expense(world.store, expense.id, world.manager.id, {"description": "mine now"})


def test_update_resolved_expense_is_invalid_state(world):
    world.add_rule(manager_first=True)
    expense = _submit(world)
    record_decision(world.store, expense.id, world.manager.id, ApprovalStatus.APPROVED)

    with pytest.raises(InvalidStateError):
        update_expense(world.store, expense.id, world.employee.id, {"amount": "1"})


def test_update_rejects_future_date(world):
    expense = _submit(world)

    with pytest.raises(ValidationError):
        update_expense(world.store, expense.id, world.employee.id, {"expense_date": utcnow() + timedelta(days=3)})


# ─── Deletion ─────────────────────────────────────────────────────────────────

def test_delete_expense_soft_deletes(world):
    expense = _submit(world)

    deleted = delete_expense(world.store, expense.id, world.employee.id)

    assert deleted.status == ExpenseStatus.DELETED
    assert world.store.count(Expense) == 1
    assert entries_for(world.store, expense.id)[-1].action == "expense_deleted"


def test_delete_twice_is_invalid_state(world):
    expense = _submit(world)
    delete_expense(world.store, expense.id, world.employee.id)

    with pytest.raises(InvalidStateError):
        delete_expense(world.store, expense.id, world.employee.id)


def test_delete_by_non_owner(world):
    expense = _submit(world)

    with pytest.raises(NotAuthorizedError):
        delete_expense(world.store, expense.id, world.admin.id)


def test_delete_missing_expense(world):
    with pytest.raises(NotFoundError):
        delete_expense(world.store, "missing", world.employee.id)


def test_list_categories_returns_a_copy():
    categories = list_categories()
    categories.append("Yachts")

    assert "Yachts" not in settings.EXPENSE_CATEGORIES
    assert "Travel" in list_categories()
