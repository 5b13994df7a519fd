from pydantic import Field

from expenseflow.db.base import Record


class Company(Record):
    """Tenant. Owns users and expenses by reference; never physically deleted."""

    name: str = Field(min_length=1)
    country: str
    base_currency: str = Field(min_length=3, max_length=3)
    address: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    is_active: bool = True
