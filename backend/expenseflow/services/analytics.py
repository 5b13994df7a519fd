"""Analytics aggregator: pure roll-ups over a filtered expense set."""
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal

from expenseflow.db.base import safe_utc, utcnow
from expenseflow.db.store import Repository
from expenseflow.models import Expense, ExpenseStatus, User
from expenseflow.schemas.analytics import AnalyticsOut, ApprovalStatsOut
from expenseflow.schemas.expense import ExpenseFilters
from expenseflow.services.queries import filter_expenses, find_pending_approvals_for_user

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def summarize_expenses(expenses: list[Expense]) -> AnalyticsOut:
    """Totals, per-status counts/amounts, category and YYYY-MM breakdowns.

    Deterministic for a given input list; breakdown keys appear in order of
    first occurrence.
    """
    totals: dict[ExpenseStatus, list[Decimal]] = defaultdict(list)
    by_category: dict[str, Decimal] = {}
    by_month: dict[str, Decimal] = {}

    for expense in expenses:
        totals[expense.status].append(expense.amount)
        by_category[expense.category] = by_category.get(expense.category, ZERO) + expense.amount
        month = expense.expense_date.strftime("%Y-%m")
        by_month[month] = by_month.get(month, ZERO) + expense.amount

    return AnalyticsOut(
        expense_count=len(expenses),
        total_amount=sum((e.amount for e in expenses), ZERO),
        approved_count=len(totals[ExpenseStatus.APPROVED]),
        approved_amount=sum(totals[ExpenseStatus.APPROVED], ZERO),
        pending_count=len(totals[ExpenseStatus.PENDING]),
        pending_amount=sum(totals[ExpenseStatus.PENDING], ZERO),
        rejected_count=len(totals[ExpenseStatus.REJECTED]),
        rejected_amount=sum(totals[ExpenseStatus.REJECTED], ZERO),
        category_breakdown=by_category,
        monthly_trends=by_month,
    )


def get_analytics(store: Repository, company_id: str, filters: ExpenseFilters | None = None) -> AnalyticsOut:
    """Roll up the company's expenses matching ``filters`` (same filter set as find_expenses)."""
    filters = (filters or ExpenseFilters()).model_copy(update={"company_id": company_id})
    return summarize_expenses(filter_expenses(store, filters))


def approval_stats(
    store: Repository,
    manager_id: str,
    company_id: str,
    now: datetime | None = None,
) -> ApprovalStatsOut:
    """Approver dashboard numbers for a manager and their direct reports."""
    now = safe_utc(now) if now else utcnow()
    team_ids = {
        u.id for u in store.query(
            User, lambda u: u.is_active and u.company_id == company_id and u.manager_id == manager_id
        )
    }
    team_expenses = [
        e for e in filter_expenses(store, ExpenseFilters(company_id=company_id))
        if e.submitted_by_id in team_ids
    ]
    week_ago = now - timedelta(days=7)

    return ApprovalStatsOut(
        pending_approvals=len(find_pending_approvals_for_user(store, manager_id)),
        team_expenses=len(team_expenses),
        team_expenses_this_month=sum(
            1 for e in team_expenses
            if e.created_at.year == now.year and e.created_at.month == now.month
        ),
        total_team_amount=sum((e.amount for e in team_expenses), ZERO),
        approved_this_week=sum(
            1 for e in team_expenses
            if e.status == ExpenseStatus.APPROVED and e.updated_at >= week_ago
        ),
    )
