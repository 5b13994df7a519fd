from expenseflow.models.enums import (
    APPROVER_ROLES,
    ApprovalStatus,
    ConditionalType,
    ExpenseStatus,
    UserRole,
)
from expenseflow.models.company import Company
from expenseflow.models.user import User
from expenseflow.models.expense import Expense
from expenseflow.models.approval import Approval
from expenseflow.models.approval_rule import ApprovalRule
from expenseflow.models.audit import AuditLog

__all__ = [
    "APPROVER_ROLES", "ApprovalStatus", "ConditionalType", "ExpenseStatus", "UserRole",
    "Company",
    "User",
    "Expense",
    "Approval",
    "ApprovalRule",
    "AuditLog",
]
