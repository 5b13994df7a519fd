"""Approval workflow engine.

Builds the ordered chain of approval steps for a new expense and derives the
expense status from its steps after every decision. All functions take a
``Repository`` so they run the same against any store implementation.
"""
import logging
from collections.abc import Iterable

from expenseflow.core.config import settings
from expenseflow.core.errors import (
    AlreadyProcessedError,
    ExpenseFlowError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from expenseflow.db.base import utcnow
from expenseflow.db.store import Repository
from expenseflow.models import (
    Approval,
    ApprovalRule,
    ApprovalStatus,
    Expense,
    ExpenseStatus,
    User,
)
from expenseflow.schemas.approval import BulkDecisionError, BulkDecisionItem, BulkDecisionResult
from expenseflow.schemas.expense import ExpenseOut
from expenseflow.services import audit as audit_svc
from expenseflow.services.queries import approvals_for_expense, find_expense_by_id

logger = logging.getLogger(__name__)

DECISIONS = (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)


# ─── Rule selection ───

def active_rules_for_company(store: Repository, company_id: str) -> list[ApprovalRule]:
    return store.query(ApprovalRule, lambda r: r.company_id == company_id and r.is_active)


def select_active_rule(rules: Iterable[ApprovalRule]) -> ApprovalRule | None:
    """Pick the rule that governs a company's workflows.

    Tie-break: earliest ``created_at``; rules created at the same instant keep
    their insertion order. Inactive rules never win.
    """
    candidates = [rule for rule in rules if rule.is_active]
    if not candidates:
        return None
    return min(candidates, key=lambda rule: rule.created_at)


# ─── Build workflow ───

def build_workflow(store: Repository, expense: Expense) -> list[Approval]:
    """Create the PENDING approval steps for a freshly created expense.

    Manager first (when the rule asks for it and the submitter has one), then
    each sequential approver in list order. Sequence numbers are contiguous
    from 1. Conditional rule fields do not add or skip steps.

    Returns the created steps; empty when the company has no active rule, in
    which case the expense stays PENDING.
    """
    rule = select_active_rule(active_rules_for_company(store, expense.company_id))
    if rule is None:
        logger.warning(
            "build_workflow: no active approval rule for company %s; expense %s has no approvers.",
            expense.company_id, expense.id,
        )
        return []

    submitter = store.find(User, expense.submitted_by_id)

    approver_ids: list[str] = []
    if rule.manager_first and submitter is not None and submitter.manager_id:
        approver_ids.append(submitter.manager_id)
    approver_ids.extend(rule.sequential_approvers)

    steps: list[Approval] = []
    for sequence, approver_id in enumerate(approver_ids, start=1):
        steps.append(
            store.create(
                Approval,
                {
                    "expense_id": expense.id,
                    "approver_id": approver_id,
                    "status": ApprovalStatus.PENDING,
                    "sequence": sequence,
                },
            )
        )

    logger.info(
        "build_workflow: expense=%s rule=%s steps=%s",
        expense.id, rule.id, len(steps),
    )
    return steps


# ─── Status derivation ───

def derive_expense_status(steps: Iterable[Approval]) -> ExpenseStatus:
    """REJECTED if any step is rejected, APPROVED once no step is pending, else PENDING.

    An expense with no steps at all stays PENDING.
    """
    statuses = [step.status for step in steps]
    if not statuses:
        return ExpenseStatus.PENDING
    if ApprovalStatus.REJECTED in statuses:
        return ExpenseStatus.REJECTED
    if ApprovalStatus.PENDING not in statuses:
        return ExpenseStatus.APPROVED
    return ExpenseStatus.PENDING


def recompute_expense_status(store: Repository, expense_id: str) -> Expense:
    """Re-derive an expense's status from all of its steps.

    Idempotent and non-incremental. A DELETED expense is left as it is.
    """
    expense = store.get(Expense, expense_id)
    if expense.status == ExpenseStatus.DELETED:
        return expense

    new_status = derive_expense_status(approvals_for_expense(store, expense_id))
    if new_status == expense.status:
        return expense

    updated = store.update_by_id(Expense, expense_id, {"status": new_status})
    audit_svc.log(
        store,
        action="expense_status_changed",
        entity_type="expense",
        entity_id=expense_id,
        before={"status": expense.status.value},
        after={"status": new_status.value},
    )
    logger.info(
        "Expense %s status %s -> %s", expense_id, expense.status.value, new_status.value,
    )
    return updated


# ─── Decisions ───

def _check_decision(decision: ApprovalStatus | str) -> ApprovalStatus:
    try:
        value = ApprovalStatus(decision)
    except ValueError:
        raise ValidationError(f"Invalid decision '{decision}'. Must be APPROVED or REJECTED.") from None
    if value not in DECISIONS:
        raise ValidationError(f"Invalid decision '{decision}'. Must be APPROVED or REJECTED.")
    return value


def _apply_decision(
    store: Repository,
    step: Approval,
    actor_id: str,
    decision: ApprovalStatus,
    comments: str | None,
) -> Approval:
    """Resolve one step and recompute its expense. Caller holds the expense lock."""
    expense = store.get(Expense, step.expense_id)
    if expense.status == ExpenseStatus.DELETED:
        raise InvalidStateError(f"Expense {expense.id} is deleted; its approvals can no longer change.")

    if settings.APPROVAL_ENFORCE_SEQUENCE:
        earlier = [
            other for other in approvals_for_expense(store, step.expense_id)
            if other.sequence < step.sequence and other.status == ApprovalStatus.PENDING
        ]
        if earlier:
            raise InvalidStateError(
                f"Approval {step.id} is step {step.sequence}; earlier steps are still pending."
            )

    updated = store.update_by_id(
        Approval,
        step.id,
        {"status": decision, "comments": comments, "approved_at": utcnow()},
    )
    audit_svc.log(
        store,
        action="approval_decided",
        entity_type="approval",
        entity_id=step.id,
        actor_id=actor_id,
        before={"status": step.status.value},
        after={"status": decision.value, "expense_id": step.expense_id},
        notes=comments,
    )
    recompute_expense_status(store, step.expense_id)

    logger.info(
        "Approval decision: approval=%s expense=%s approver=%s decision=%s",
        step.id, step.expense_id, actor_id, decision.value,
    )
    return updated


def record_decision(
    store: Repository,
    expense_id: str,
    approver_id: str,
    decision: ApprovalStatus | str,
    comments: str | None = None,
) -> Approval:
    """Resolve the pending step of ``approver_id`` on ``expense_id``.

    Raises:
        NotFoundError: the expense does not exist.
        NotAuthorizedError: ``approver_id`` holds no step on this expense.
        AlreadyProcessedError: the approver's steps are all resolved.
        InvalidStateError: the expense has been deleted, or an earlier step is
            still pending while sequence enforcement is on.
    """
    decision = _check_decision(decision)
    store.get(Expense, expense_id)

    with store.lock(expense_id):
        own_steps = [
            step for step in approvals_for_expense(store, expense_id)
            if step.approver_id == approver_id
        ]
        if not own_steps:
            raise NotAuthorizedError(f"User {approver_id} is not an approver of expense {expense_id}")
        pending = [step for step in own_steps if step.status == ApprovalStatus.PENDING]
        if not pending:
            raise AlreadyProcessedError(f"Approval for expense {expense_id} has already been processed")
        return _apply_decision(store, pending[0], approver_id, decision, comments)


def decide_approval(
    store: Repository,
    approval_id: str,
    actor_id: str,
    decision: ApprovalStatus | str,
    comments: str | None = None,
) -> tuple[Approval, ExpenseOut]:
    """Resolve a step addressed by its own id.

    Checks existence, then approver match, then status, in that order.
    Returns the updated step and the refreshed expense view.
    """
    decision = _check_decision(decision)
    step = store.find(Approval, approval_id)
    if step is None:
        raise NotFoundError("Approval not found")

    with store.lock(step.expense_id):
        step = store.get(Approval, approval_id)
        if step.approver_id != actor_id:
            raise NotAuthorizedError("Not authorized")
        if step.status != ApprovalStatus.PENDING:
            raise AlreadyProcessedError("Already processed")
        updated = _apply_decision(store, step, actor_id, decision, comments)

    return updated, find_expense_by_id(store, updated.expense_id)


def bulk_decide(
    store: Repository,
    approval_ids: list[str],
    decision: ApprovalStatus | str,
    comments: str | None = None,
    actor_id: str | None = None,
) -> BulkDecisionResult:
    """Apply one decision to many steps; each id succeeds or fails on its own.

    A failing id is reported in ``errors`` and processing continues with the
    rest.
    """
    decision = _check_decision(decision)
    outcome = BulkDecisionResult()

    for approval_id in approval_ids:
        try:
            step = store.find(Approval, approval_id)
            if step is None:
                raise NotFoundError("Approval not found")
            updated, _ = decide_approval(
                store,
                approval_id,
                actor_id if actor_id is not None else step.approver_id,
                decision,
                comments,
            )
        except ExpenseFlowError as exc:
            outcome.errors.append(BulkDecisionError(id=approval_id, error=exc.message))
            continue
        outcome.results.append(BulkDecisionItem(id=approval_id, approval=updated))

    logger.info(
        "Bulk %s completed: %s succeeded, %s failed.",
        decision.value.lower(), outcome.succeeded, outcome.failed,
    )
    return outcome
