"""Pydantic schemas for analytics and statistics responses."""
from decimal import Decimal

from pydantic import Field

from expenseflow.db.base import CamelModel


class AnalyticsOut(CamelModel):
    expense_count: int = 0
    total_amount: Decimal = Decimal("0")
    approved_count: int = 0
    approved_amount: Decimal = Decimal("0")
    pending_count: int = 0
    pending_amount: Decimal = Decimal("0")
    rejected_count: int = 0
    rejected_amount: Decimal = Decimal("0")
    category_breakdown: dict[str, Decimal] = Field(default_factory=dict)
    monthly_trends: dict[str, Decimal] = Field(default_factory=dict)


class ApprovalStatsOut(CamelModel):
    pending_approvals: int
    team_expenses: int
    team_expenses_this_month: int
    total_team_amount: Decimal
    approved_this_week: int
