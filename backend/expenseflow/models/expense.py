from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from expenseflow.db.base import Record, safe_utc
from expenseflow.models.enums import ExpenseStatus


class Expense(Record):
    amount: Decimal = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    converted_amount: Decimal | None = None
    base_currency: str | None = None
    exchange_rate: Decimal | None = Field(default=None, gt=0)
    category: str = Field(min_length=1)
    description: str
    vendor: str | None = None
    expense_date: datetime
    receipt_url: str | None = None
    ocr_extracted: bool = False
    ocr_confidence: float | None = Field(default=None, ge=0, le=1)
    status: ExpenseStatus = ExpenseStatus.PENDING
    submitted_by_id: str
    company_id: str

    @field_validator("expense_date")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return safe_utc(value)
