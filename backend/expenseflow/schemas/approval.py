"""Pydantic schemas for the approval workflow."""
from typing import Literal

from pydantic import Field

from expenseflow.db.base import CamelModel
from expenseflow.models import Approval, Expense
from expenseflow.schemas.user import UserSummary


# ─── Approval step views ───

class ApprovalOut(Approval):
    approver: UserSummary | None = None


class PendingExpenseOut(Expense):
    submitted_by: UserSummary | None = None


class PendingApprovalOut(Approval):
    """A pending step assigned to a user, with the expense it gates."""

    expense: PendingExpenseOut


# ─── Bulk decisions ───

class BulkDecisionItem(CamelModel):
    id: str
    status: Literal["success"] = "success"
    approval: Approval


class BulkDecisionError(CamelModel):
    id: str
    error: str


class BulkDecisionResult(CamelModel):
    results: list[BulkDecisionItem] = Field(default_factory=list)
    errors: list[BulkDecisionError] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)
