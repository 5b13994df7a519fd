"""Pydantic schemas for approval rules, templates and rule simulation."""
from decimal import Decimal

from pydantic import Field

from expenseflow.db.base import CamelModel
from expenseflow.models import ConditionalType, UserRole


class ApprovalRuleIn(CamelModel):
    name: str = Field(min_length=1)
    manager_first: bool = False
    sequential_approvers: list[str] = Field(default_factory=list)
    conditional_type: ConditionalType | None = None
    conditional_value: Decimal | None = None
    amount_threshold: Decimal | None = Field(default=None, ge=0)


class ApprovalRuleUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    manager_first: bool | None = None
    sequential_approvers: list[str] | None = None
    conditional_type: ConditionalType | None = None
    conditional_value: Decimal | None = None
    amount_threshold: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class RuleTemplate(CamelModel):
    id: str
    name: str
    description: str
    config: dict


# ─── Simulation ───

class ApproverPreview(CamelModel):
    id: str
    full_name: str
    role: UserRole


class WorkflowStepPreview(CamelModel):
    sequence: int
    approver: ApproverPreview
    required: bool = True
    reason: str


class ConditionalEvaluation(CamelModel):
    type: ConditionalType | None = None
    value: Decimal | None = None
    threshold: Decimal | None = None
    applies: bool = False


class EmployeePreview(CamelModel):
    id: str
    full_name: str
    manager: ApproverPreview | None = None


class RuleSimulation(CamelModel):
    rule_name: str
    expense_amount: Decimal
    employee: EmployeePreview
    workflow: list[WorkflowStepPreview]
    conditional_rules: ConditionalEvaluation
    estimated_approvers: int
    estimated_time: str
