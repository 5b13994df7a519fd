import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class ExpenseStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DELETED = "DELETED"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ConditionalType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    SPECIFIC_APPROVER = "SPECIFIC_APPROVER"
    HYBRID = "HYBRID"
    AMOUNT_THRESHOLD = "AMOUNT_THRESHOLD"


APPROVER_ROLES = (UserRole.MANAGER, UserRole.ADMIN)
