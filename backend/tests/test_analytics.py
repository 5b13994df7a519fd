"""Tests for the analytics aggregator."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from expenseflow.models import ApprovalStatus, Expense, ExpenseStatus
from expenseflow.schemas.expense import ExpenseFilters
from expenseflow.services.analytics import approval_stats, get_analytics, summarize_expenses
from expenseflow.services.approval import record_decision
from expenseflow.services.expenses import create_expense, delete_expense


def _expense(amount: str, status: ExpenseStatus, category: str, when: datetime) -> Expense:
    return Expense(
        amount=Decimal(amount),
        currency="USD",
        category=category,
        description="x",
        expense_date=when,
        status=status,
        submitted_by_id="u",
        company_id="c",
    )


def test_summarize_expenses_breakdowns():
    jan = datetime(2024, 1, 15, tzinfo=timezone.utc)
    feb = datetime(2024, 2, 3, tzinfo=timezone.utc)
    expenses = [
        _expense("100.10", ExpenseStatus.APPROVED, "Travel", jan),
        _expense("0.20", ExpenseStatus.PENDING, "Food & Dining", jan),
        _expense("50", ExpenseStatus.REJECTED, "Travel", feb),
        _expense("25", ExpenseStatus.PENDING, "Travel", feb),
    ]

    summary = summarize_expenses(expenses)

    assert summary.expense_count == 4
    assert summary.total_amount == Decimal("175.30")
    assert (summary.approved_count, summary.approved_amount) == (1, Decimal("100.10"))
    assert (summary.pending_count, summary.pending_amount) == (2, Decimal("25.20"))
    assert (summary.rejected_count, summary.rejected_amount) == (1, Decimal("50"))
    assert summary.category_breakdown == {"Travel": Decimal("175.10"), "Food & Dining": Decimal("0.20")}
    assert summary.monthly_trends == {"2024-01": Decimal("100.30"), "2024-02": Decimal("75")}


def test_summarize_empty():
    summary = summarize_expenses([])

    assert summary.total_amount == Decimal("0")
    assert summary.category_breakdown == {}


def test_summary_is_independent_of_input_order():
    when = datetime(2024, 3, 1, tzinfo=timezone.utc)
    expenses = [
        _expense("1", ExpenseStatus.PENDING, "A", when),
        _expense("2", ExpenseStatus.APPROVED, "B", when),
    ]

    forward = summarize_expenses(expenses)
    backward = summarize_expenses(list(reversed(expenses)))

    assert forward.category_breakdown == backward.category_breakdown
    assert forward.total_amount == backward.total_amount


def test_get_analytics_scopes_to_company_and_filters(world, store):
    world.add_rule(manager_first=True)
    approved = create_expense(store, world.expense_payload("200"), world.employee.id, world.company.id)
    record_decision(store, approved.id, world.manager.id, ApprovalStatus.APPROVED)
    create_expense(store, world.expense_payload("40", category="Food & Dining"), world.employee.id, world.company.id)
    deleted = create_expense(store, world.expense_payload("999"), world.employee.id, world.company.id)
    delete_expense(store, deleted.id, world.employee.id)

    summary = get_analytics(store, world.company.id)

    # deleted rows count towards the totals but not towards any status bucket
    assert summary.expense_count == 3
    assert summary.total_amount == Decimal("1239")
    assert summary.approved_amount == Decimal("200")
    assert summary.pending_amount == Decimal("40")
    assert summary.rejected_count == 0

    travel_only = get_analytics(store, world.company.id, ExpenseFilters(category="Travel", company_id="ignored"))
    assert travel_only.expense_count == 2
    live = get_analytics(store, world.company.id, ExpenseFilters(status=ExpenseStatus.PENDING))
    assert live.total_amount == Decimal("40")
    assert get_analytics(store, "other-company").expense_count == 0


def test_get_analytics_wire_shape(world):
    create_expense(world.store, world.expense_payload("12.5"), world.employee.id, world.company.id)

    payload = get_analytics(world.store, world.company.id).model_dump(by_alias=True, mode="json")

    assert set(payload) >= {"totalAmount", "approvedCount", "pendingAmount", "categoryBreakdown", "monthlyTrends"}


def test_approval_stats(world, make_user):
    world.add_rule(manager_first=True)
    outsider = make_user(world.company, "outsider@acme.io", manager=world.finance)
    first = create_expense(world.store, world.expense_payload("100"), world.employee.id, world.company.id)
    create_expense(world.store, world.expense_payload("50"), world.employee.id, world.company.id)
    create_expense(world.store, world.expense_payload("75"), outsider.id, world.company.id)
    record_decision(world.store, first.id, world.manager.id, ApprovalStatus.APPROVED)

    stats = approval_stats(world.store, world.manager.id, world.company.id)

    assert stats.pending_approvals == 1
    assert stats.team_expenses == 2
    assert stats.team_expenses_this_month == 2
    assert stats.total_team_amount == Decimal("150")
    assert stats.approved_this_week == 1

    later = approval_stats(world.store, world.manager.id, world.company.id, now=datetime.now(timezone.utc) + timedelta(days=60))
    assert later.approved_this_week == 0
    assert later.team_expenses_this_month == 0
