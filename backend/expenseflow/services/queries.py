"""Query/join layer.

Filters the base collections and attaches related summaries to produce the
API-shaped views. Ordering is part of the contract: expense lists are
newest-first, approval sub-lists are sequence-ascending.
"""
import logging
from datetime import datetime

from expenseflow.db.base import safe_utc
from expenseflow.db.store import Repository
from expenseflow.models import (
    Approval,
    ApprovalStatus,
    Company,
    Expense,
    ExpenseStatus,
    User,
)
from expenseflow.schemas.approval import ApprovalOut, PendingApprovalOut, PendingExpenseOut
from expenseflow.schemas.expense import ExpenseFilters, ExpenseOut
from expenseflow.schemas.user import ManagerSummary, UserFilters, UserOut, UserSummary

logger = logging.getLogger(__name__)


# ─── Summaries ───

def _active_user(store: Repository, user_id: str | None) -> User | None:
    user = store.find(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def user_summary(store: Repository, user_id: str | None) -> UserSummary | None:
    user = store.find(User, user_id)
    if user is None:
        return None
    return UserSummary(id=user.id, full_name=user.full_name, email=user.email, avatar=user.avatar)


def manager_summary(store: Repository, manager_id: str | None) -> ManagerSummary | None:
    """Only an active manager resolves; a soft-deleted one yields None."""
    manager = _active_user(store, manager_id)
    if manager is None:
        return None
    return ManagerSummary(id=manager.id, full_name=manager.full_name, email=manager.email)


def _user_view(store: Repository, user: User) -> UserOut:
    return UserOut(
        **user.model_dump(),
        company=store.find(Company, user.company_id),
        manager=manager_summary(store, user.manager_id),
    )


def _newest_first(records: list) -> list:
    # insertion position breaks ties between equal timestamps
    ranked = sorted(enumerate(records), key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [record for _, record in ranked]


# ─── Users ───

def find_user_by_id(store: Repository, user_id: str) -> UserOut | None:
    user = _active_user(store, user_id)
    return _user_view(store, user) if user else None


def find_user_by_email(store: Repository, email: str) -> UserOut | None:
    wanted = email.strip().lower()
    user = store.first(User, lambda u: u.is_active and u.email.lower() == wanted)
    return _user_view(store, user) if user else None


def find_users(store: Repository, filters: UserFilters | None = None) -> list[UserOut]:
    """Active users matching ``filters``, each with company and manager attached."""
    filters = filters or UserFilters()
    search = filters.search.lower() if filters.search else None

    def matches(user: User) -> bool:
        if not user.is_active:
            return False
        if filters.company_id and user.company_id != filters.company_id:
            return False
        if filters.role and user.role != filters.role:
            return False
        if search and search not in user.full_name.lower() and search not in user.email.lower():
            return False
        return True

    return [_user_view(store, user) for user in store.query(User, matches)]


# ─── Expenses ───

def approvals_for_expense(store: Repository, expense_id: str) -> list[Approval]:
    """All workflow steps of an expense, sequence-ascending."""
    steps = store.query(Approval, lambda a: a.expense_id == expense_id)
    return sorted(steps, key=lambda a: a.sequence)


def _expense_view(store: Repository, expense: Expense) -> ExpenseOut:
    approvals = [
        ApprovalOut(**step.model_dump(), approver=user_summary(store, step.approver_id))
        for step in approvals_for_expense(store, expense.id)
    ]
    return ExpenseOut(
        **expense.model_dump(),
        submitted_by=user_summary(store, expense.submitted_by_id),
        approvals=approvals,
    )


def _bound(value: datetime | None) -> datetime | None:
    return safe_utc(value) if value is not None else None


def filter_expenses(store: Repository, filters: ExpenseFilters | None = None) -> list[Expense]:
    """Base expense records matching ``filters``, newest-first."""
    filters = filters or ExpenseFilters()
    date_from = _bound(filters.date_from)
    date_to = _bound(filters.date_to)
    search = filters.search.lower() if filters.search else None

    def matches(expense: Expense) -> bool:
        if filters.company_id and expense.company_id != filters.company_id:
            return False
        if filters.submitted_by_id and expense.submitted_by_id != filters.submitted_by_id:
            return False
        if filters.status and expense.status != filters.status:
            return False
        if filters.category and expense.category != filters.category:
            return False
        if date_from and expense.expense_date < date_from:
            return False
        if date_to and expense.expense_date > date_to:
            return False
        if search and search not in expense.description.lower() and search not in expense.category.lower():
            return False
        return True

    return _newest_first(store.query(Expense, matches))


def find_expenses(store: Repository, filters: ExpenseFilters | None = None) -> list[ExpenseOut]:
    """Expenses with submitter summary and approval steps, newest-first."""
    return [_expense_view(store, expense) for expense in filter_expenses(store, filters)]


def find_expense_by_id(store: Repository, expense_id: str) -> ExpenseOut | None:
    expense = store.find(Expense, expense_id)
    if expense is None:
        return None
    return _expense_view(store, expense)


# ─── Approver inboxes ───

def find_pending_approvals_for_user(store: Repository, user_id: str) -> list[PendingApprovalOut]:
    """Pending steps assigned to ``user_id`` with the expense each one gates."""
    items: list[PendingApprovalOut] = []
    for step in store.query(
        Approval, lambda a: a.approver_id == user_id and a.status == ApprovalStatus.PENDING
    ):
        expense = store.find(Expense, step.expense_id)
        if expense is None:
            logger.warning("Approval %s points at missing expense %s", step.id, step.expense_id)
            continue
        items.append(
            PendingApprovalOut(
                **step.model_dump(),
                expense=PendingExpenseOut(
                    **expense.model_dump(),
                    submitted_by=user_summary(store, expense.submitted_by_id),
                ),
            )
        )
    return items


def find_pending_for_manager(store: Repository, manager_id: str, company_id: str) -> list[PendingExpenseOut]:
    """PENDING expenses submitted by the manager's direct reports, newest-first."""

    def is_team_pending(expense: Expense) -> bool:
        if expense.company_id != company_id or expense.status != ExpenseStatus.PENDING:
            return False
        submitter = store.find(User, expense.submitted_by_id)
        return submitter is not None and submitter.manager_id == manager_id

    return [
        PendingExpenseOut(
            **expense.model_dump(),
            submitted_by=user_summary(store, expense.submitted_by_id),
        )
        for expense in _newest_first(store.query(Expense, is_team_pending))
    ]
