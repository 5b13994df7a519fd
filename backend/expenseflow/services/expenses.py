"""Expense lifecycle: submission, owner edits and soft deletion.

Status moves to APPROVED/REJECTED only through the approval engine; this
module handles the submitter-side transitions.
"""
import logging
from datetime import datetime, time, timezone
from typing import Any

from expenseflow.core.config import settings
from expenseflow.core.errors import InvalidStateError, NotAuthorizedError, NotFoundError, ValidationError
from expenseflow.db.base import parse_payload, safe_utc, utcnow
from expenseflow.db.store import Repository
from expenseflow.models import Company, Expense, ExpenseStatus, User
from expenseflow.schemas.expense import ExpenseCreate, ExpenseOut, ExpenseUpdate
from expenseflow.services import audit as audit_svc
from expenseflow.services import fx
from expenseflow.services.approval import build_workflow
from expenseflow.services.queries import find_expense_by_id

logger = logging.getLogger(__name__)


def list_categories() -> list[str]:
    return list(settings.EXPENSE_CATEGORIES)


def _check_not_future(expense_date: datetime, now: datetime | None = None) -> datetime:
    """Reject dates after the end of the current UTC day."""
    now = now or utcnow()
    end_of_today = datetime.combine(now.date(), time.max, tzinfo=timezone.utc)
    expense_date = safe_utc(expense_date)
    if expense_date > end_of_today:
        raise ValidationError("Expense date cannot be in the future")
    return expense_date


def _fill_conversion(data: dict[str, Any], company: Company) -> None:
    """Populate converted amount and rate from the static FX table when not supplied."""
    if data.get("converted_amount") is not None:
        return
    base = company.base_currency.upper()
    if data["currency"].upper() == base:
        data["converted_amount"] = data["amount"]
        data["exchange_rate"] = data.get("exchange_rate") or 1
        data["base_currency"] = base
        return
    converted = fx.convert(data["amount"], data["currency"], base)
    if converted is None:
        logger.warning("No FX rate for %s -> %s; leaving expense unconverted.", data["currency"], base)
        return
    data["converted_amount"], data["exchange_rate"] = converted
    data["base_currency"] = base


def create_expense(
    store: Repository,
    payload: ExpenseCreate | dict[str, Any],
    submitter_id: str,
    company_id: str,
) -> ExpenseOut:
    """Submit a new PENDING expense and build its approval workflow.

    Raises:
        ValidationError: malformed payload or a future expense date.
        NotFoundError: unknown company or submitter.
        NotAuthorizedError: submitter is inactive or belongs to another company.
    """
    body = parse_payload(ExpenseCreate, payload)
    company = store.get(Company, company_id)
    submitter = store.find(User, submitter_id)
    if submitter is None:
        raise NotFoundError(f"User {submitter_id} not found")
    if not submitter.is_active or submitter.company_id != company.id:
        raise NotAuthorizedError(f"User {submitter_id} cannot submit expenses for company {company_id}")

    data = body.model_dump()
    data["currency"] = data["currency"].upper()
    data["expense_date"] = _check_not_future(body.expense_date)
    _fill_conversion(data, company)
    data.update(
        status=ExpenseStatus.PENDING,
        submitted_by_id=submitter.id,
        company_id=company.id,
    )

    expense = store.create(Expense, data)
    audit_svc.log(
        store,
        action="expense_created",
        entity_type="expense",
        entity_id=expense.id,
        actor_id=submitter.id,
        after={"amount": str(expense.amount), "currency": expense.currency, "status": expense.status.value},
    )
    build_workflow(store, expense)

    logger.info("Expense %s submitted by %s (%s %s)", expense.id, submitter.id, expense.amount, expense.currency)
    return find_expense_by_id(store, expense.id)


def _owned_pending(store: Repository, expense_id: str, actor_id: str, verb: str) -> Expense:
    expense = store.get(Expense, expense_id)
    if expense.submitted_by_id != actor_id:
        raise NotAuthorizedError(f"You can only {verb} your own expenses")
    if expense.status != ExpenseStatus.PENDING:
        raise InvalidStateError(f"You can only {verb} pending expenses")
    return expense


def update_expense(
    store: Repository,
    expense_id: str,
    actor_id: str,
    patch: ExpenseUpdate | dict[str, Any],
) -> ExpenseOut:
    """Edit a PENDING expense; only its submitter may do so.

    A new amount or currency recomputes the base-currency conversion.
    """
    body = parse_payload(ExpenseUpdate, patch)
    changes = body.model_dump(exclude_unset=True)
    with store.lock(expense_id):
        expense = _owned_pending(store, expense_id, actor_id, "edit")
        if changes.get("expense_date") is not None:
            changes["expense_date"] = _check_not_future(changes["expense_date"])
        if changes.get("currency"):
            changes["currency"] = changes["currency"].upper()
        if changes.get("amount") is not None or changes.get("currency"):
            conversion = {
                "amount": changes.get("amount") or expense.amount,
                "currency": changes.get("currency") or expense.currency,
                "converted_amount": None,
                "exchange_rate": None,
                "base_currency": None,
            }
            _fill_conversion(conversion, store.get(Company, expense.company_id))
            changes.update(
                converted_amount=conversion["converted_amount"],
                exchange_rate=conversion["exchange_rate"],
                base_currency=conversion["base_currency"],
            )
        store.update_by_id(Expense, expense_id, changes)
    logger.info("Expense %s updated by %s: %s", expense_id, actor_id, sorted(changes))
    return find_expense_by_id(store, expense_id)


def delete_expense(store: Repository, expense_id: str, actor_id: str) -> Expense:
    """Soft delete: a PENDING expense becomes DELETED. Submitter only."""
    with store.lock(expense_id):
        expense = _owned_pending(store, expense_id, actor_id, "delete")
        deleted = store.soft_delete(Expense, expense_id)
    audit_svc.log(
        store,
        action="expense_deleted",
        entity_type="expense",
        entity_id=expense_id,
        actor_id=actor_id,
        before={"status": expense.status.value},
        after={"status": deleted.status.value},
    )
    logger.info("Expense %s deleted by %s", expense_id, actor_id)
    return deleted
