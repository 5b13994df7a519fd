from datetime import datetime

from pydantic import Field

from expenseflow.db.base import Record
from expenseflow.models.enums import ApprovalStatus


class Approval(Record):
    """A single approval step in the workflow of an expense."""

    expense_id: str
    approver_id: str
    status: ApprovalStatus = ApprovalStatus.PENDING
    comments: str | None = None
    sequence: int = Field(ge=1)  # contiguous from 1 per expense
    approved_at: datetime | None = None
