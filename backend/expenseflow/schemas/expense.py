"""Pydantic schemas for expense payloads, filters and views."""
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from expenseflow.db.base import CamelModel
from expenseflow.models import Expense, ExpenseStatus
from expenseflow.schemas.approval import ApprovalOut
from expenseflow.schemas.user import UserSummary


class ExpenseOut(Expense):
    """Expense with submitter summary and its workflow steps."""

    submitted_by: UserSummary | None = None
    approvals: list[ApprovalOut] = Field(default_factory=list)


class ExpenseFilters(CamelModel):
    company_id: str | None = None
    submitted_by_id: str | None = None
    status: ExpenseStatus | None = None
    category: str | None = None
    date_from: datetime | None = None  # inclusive, over expense_date
    date_to: datetime | None = None  # inclusive, over expense_date
    search: str | None = None


class ExpenseCreate(CamelModel):
    amount: Decimal = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    converted_amount: Decimal | None = Field(default=None, gt=0)
    base_currency: str | None = Field(default=None, min_length=3, max_length=3)
    exchange_rate: Decimal | None = Field(default=None, gt=0)
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    vendor: str | None = Field(default=None, min_length=1)
    expense_date: datetime
    receipt_url: str | None = None
    ocr_extracted: bool = False
    ocr_confidence: float | None = Field(default=None, ge=0, le=1)


class ExpenseUpdate(CamelModel):
    amount: Decimal | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    category: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    vendor: str | None = None
    expense_date: datetime | None = None
    receipt_url: str | None = None
