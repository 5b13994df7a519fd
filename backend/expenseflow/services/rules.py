"""Approval rule administration and rule simulation."""
import logging
from decimal import Decimal
from typing import Any

from expenseflow.core.config import settings
from expenseflow.core.errors import NotFoundError, ValidationError
from expenseflow.db.base import parse_payload
from expenseflow.db.store import Repository
from expenseflow.models import APPROVER_ROLES, ApprovalRule, ConditionalType, User
from expenseflow.schemas.approval_rule import (
    ApprovalRuleIn,
    ApprovalRuleUpdate,
    ApproverPreview,
    ConditionalEvaluation,
    EmployeePreview,
    RuleSimulation,
    RuleTemplate,
    WorkflowStepPreview,
)

logger = logging.getLogger(__name__)

RULE_TEMPLATES: list[RuleTemplate] = [
    RuleTemplate(
        id="basic",
        name="Basic Approval",
        description="Manager approval only",
        config={"managerFirst": True, "sequentialApprovers": [], "conditionalType": None, "conditionalValue": None},
    ),
    RuleTemplate(
        id="standard",
        name="Standard Approval",
        description="Manager first, then Finance for amounts over 500",
        config={
            "managerFirst": True,
            "sequentialApprovers": [],
            "conditionalType": ConditionalType.AMOUNT_THRESHOLD.value,
            "conditionalValue": None,
            "amountThreshold": 500,
        },
    ),
    RuleTemplate(
        id="advanced",
        name="Advanced Multi-Level",
        description="Manager, then Finance, then Director for high amounts",
        config={
            "managerFirst": True,
            "sequentialApprovers": [],
            "conditionalType": ConditionalType.AMOUNT_THRESHOLD.value,
            "conditionalValue": None,
            "amountThreshold": 1000,
        },
    ),
    RuleTemplate(
        id="percentage",
        name="Percentage Based",
        description="Approve when 60% of approvers agree",
        config={
            "managerFirst": False,
            "sequentialApprovers": [],
            "conditionalType": ConditionalType.PERCENTAGE.value,
            "conditionalValue": 60,
        },
    ),
]


def _validate_approvers(store: Repository, company_id: str, approver_ids: list[str]) -> None:
    for approver_id in approver_ids:
        approver = store.find(User, approver_id)
        if (
            approver is None
            or not approver.is_active
            or approver.company_id != company_id
            or approver.role not in APPROVER_ROLES
        ):
            raise ValidationError(
                "All sequential approvers must be valid managers or admins in your company"
            )


def _company_rule(store: Repository, rule_id: str, company_id: str) -> ApprovalRule:
    rule = store.find(ApprovalRule, rule_id)
    if rule is None or rule.company_id != company_id:
        raise NotFoundError("Approval rule not found or access denied")
    return rule


def list_approval_rules(store: Repository, company_id: str) -> list[ApprovalRule]:
    return store.query(ApprovalRule, lambda r: r.company_id == company_id)


def create_approval_rule(
    store: Repository,
    company_id: str,
    data: ApprovalRuleIn | dict[str, Any],
) -> ApprovalRule:
    body = parse_payload(ApprovalRuleIn, data)
    _validate_approvers(store, company_id, body.sequential_approvers)
    rule = store.create(ApprovalRule, {**body.model_dump(), "company_id": company_id, "is_active": True})
    logger.info("Approval rule %s (%s) created for company %s", rule.id, rule.name, company_id)
    return rule


def update_approval_rule(
    store: Repository,
    rule_id: str,
    company_id: str,
    patch: ApprovalRuleUpdate | dict[str, Any],
) -> ApprovalRule:
    _company_rule(store, rule_id, company_id)
    changes = parse_payload(ApprovalRuleUpdate, patch).model_dump(exclude_unset=True)
    if changes.get("sequential_approvers"):
        _validate_approvers(store, company_id, changes["sequential_approvers"])
    if "sequential_approvers" in changes and changes["sequential_approvers"] is None:
        changes["sequential_approvers"] = []
    rule = store.update_by_id(ApprovalRule, rule_id, changes)
    logger.info("Approval rule %s updated: %s", rule_id, sorted(changes))
    return rule


def deactivate_approval_rule(store: Repository, rule_id: str, company_id: str) -> ApprovalRule:
    """Rules are never removed; deleting one marks it inactive."""
    _company_rule(store, rule_id, company_id)
    return store.update_by_id(ApprovalRule, rule_id, {"is_active": False})


def _preview(user: User) -> ApproverPreview:
    return ApproverPreview(id=user.id, full_name=user.full_name, role=user.role)


def simulate_rule(
    store: Repository,
    rule_id: str,
    company_id: str,
    expense_amount: Decimal | float | str,
    employee_id: str,
) -> RuleSimulation:
    """Show the workflow ``rule`` would build for ``employee_id`` and how its
    conditional fields evaluate for ``expense_amount``.

    Nothing is written. Conditional evaluation is informational only; the real
    workflow builder ignores it.
    """
    rule = _company_rule(store, rule_id, company_id)
    amount = Decimal(str(expense_amount))
    if amount <= 0:
        raise ValidationError("Expense amount must be positive")

    employee = store.find(User, employee_id)
    if employee is None or not employee.is_active or employee.company_id != company_id:
        raise NotFoundError("Employee not found")

    workflow: list[WorkflowStepPreview] = []
    manager_preview: ApproverPreview | None = None

    if rule.manager_first and employee.manager_id:
        manager = store.find(User, employee.manager_id)
        if manager is not None and manager.is_active:
            manager_preview = _preview(manager)
            workflow.append(
                WorkflowStepPreview(
                    sequence=len(workflow) + 1,
                    approver=manager_preview,
                    reason="Direct manager approval",
                )
            )

    for approver_id in rule.sequential_approvers:
        approver = store.find(User, approver_id)
        if approver is None or not approver.is_active:
            logger.warning("simulate_rule: approver %s on rule %s is unavailable", approver_id, rule.id)
            continue
        workflow.append(
            WorkflowStepPreview(
                sequence=len(workflow) + 1,
                approver=_preview(approver),
                reason="Sequential approver",
            )
        )

    applies = False
    if rule.conditional_type == ConditionalType.AMOUNT_THRESHOLD and rule.amount_threshold:
        applies = amount >= rule.amount_threshold

    return RuleSimulation(
        rule_name=rule.name,
        expense_amount=amount,
        employee=EmployeePreview(id=employee.id, full_name=employee.full_name, manager=manager_preview),
        workflow=workflow,
        conditional_rules=ConditionalEvaluation(
            type=rule.conditional_type,
            value=rule.conditional_value,
            threshold=rule.amount_threshold,
            applies=applies,
        ),
        estimated_approvers=len(workflow),
        estimated_time=f"{len(workflow) * settings.APPROVAL_STEP_ESTIMATE_HOURS} hours",
    )
