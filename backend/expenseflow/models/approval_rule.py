from decimal import Decimal

from pydantic import Field

from expenseflow.db.base import Record
from expenseflow.models.enums import ConditionalType


class ApprovalRule(Record):
    """Company-level approval configuration.

    The conditional fields are evaluated by rule simulation only; workflow
    construction ignores them.
    """

    company_id: str
    name: str = Field(min_length=1)
    manager_first: bool = False
    sequential_approvers: list[str] = Field(default_factory=list)
    conditional_type: ConditionalType | None = None
    conditional_value: Decimal | None = None
    amount_threshold: Decimal | None = Field(default=None, ge=0)
    is_active: bool = True
