from pydantic import Field

from expenseflow.db.base import Record
from expenseflow.models.enums import UserRole


class User(Record):
    email: str = Field(min_length=3)
    password_hash: str
    full_name: str = Field(min_length=1)
    role: UserRole
    company_id: str
    manager_id: str | None = None  # parent pointer; cycles rejected at mutation time
    is_active: bool = True  # soft delete
    avatar: str | None = None
