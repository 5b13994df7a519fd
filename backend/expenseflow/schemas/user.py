"""Pydantic schemas for users and their joined views."""
from pydantic import EmailStr, Field

from expenseflow.db.base import CamelModel
from expenseflow.models import Company, User, UserRole


# ─── Summaries attached by the join layer ───

class UserSummary(CamelModel):
    id: str
    full_name: str
    email: str
    avatar: str | None = None


class ManagerSummary(CamelModel):
    id: str
    full_name: str
    email: str


# ─── User view ───

class UserOut(User):
    """User with company and manager attached; never exposes the password hash."""

    password_hash: str = Field(exclude=True)
    company: Company | None = None
    manager: ManagerSummary | None = None


class UserFilters(CamelModel):
    company_id: str | None = None
    role: UserRole | None = None
    search: str | None = None


# ─── Mutations ───

class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    role: UserRole
    manager_id: str | None = None
    avatar: str | None = None


class UserUpdate(CamelModel):
    full_name: str | None = Field(default=None, min_length=2)
    role: UserRole | None = None
    manager_id: str | None = None
    is_active: bool | None = None
    avatar: str | None = None


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    company_name: str = Field(min_length=2)
    country: str = Field(min_length=1)


class UserStatsOut(CamelModel):
    total: int
    admins: int
    managers: int
    employees: int
    active: int
    inactive: int
