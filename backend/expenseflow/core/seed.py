"""Seed demo data into a store."""
import logging
import random
from datetime import timedelta
from decimal import Decimal

from expenseflow.core.security import hash_password
from expenseflow.db.base import utcnow
from expenseflow.db.store import Repository
from expenseflow.models import (
    ApprovalRule,
    ApprovalStatus,
    Company,
    ConditionalType,
    User,
    UserRole,
)
from expenseflow.services.approval import decide_approval
from expenseflow.services.expenses import create_expense

logger = logging.getLogger(__name__)

DEMO_COMPANY = {
    "name": "Demo Company Inc",
    "country": "United States",
    "base_currency": "USD",
    "address": "123 Demo Street, San Francisco, CA 94105",
    "contact_email": "contact@demo.com",
    "contact_phone": "+1-555-0123",
}

# (email, full_name, role, password, reports_to)
DEMO_USERS = [
    ("admin@demo.com", "Admin User", UserRole.ADMIN, "admin123", None),
    ("manager@demo.com", "Manager User", UserRole.MANAGER, "manager123", "admin@demo.com"),
    ("employee@demo.com", "Employee User", UserRole.EMPLOYEE, "employee123", "manager@demo.com"),
    ("john@demo.com", "John Smith", UserRole.EMPLOYEE, "employee123", "manager@demo.com"),
    ("sarah@demo.com", "Sarah Wilson", UserRole.EMPLOYEE, "employee123", "manager@demo.com"),
]

# category -> (descriptions, vendors)
SAMPLE_EXPENSES: dict[str, tuple[list[str], list[str]]] = {
    "Travel": (
        ["Flight to New York for client meeting", "Hotel accommodation in Chicago", "Taxi to airport"],
        ["Delta Airlines", "Marriott Hotel", "Uber", "Hertz Car Rental"],
    ),
    "Food & Dining": (
        ["Business lunch with client", "Team dinner after conference", "Coffee meeting with vendor"],
        ["Starbucks", "The Cheesecake Factory", "Subway", "Local Bistro"],
    ),
    "Accommodation": (
        ["Hotel stay for business trip", "Airbnb for extended project work"],
        ["Hilton Hotels", "Airbnb Host", "Holiday Inn"],
    ),
    "Transportation": (
        ["Uber to client office", "Train ticket for business travel", "Parking fees"],
        ["Uber", "Yellow Cab", "Metro Transit", "Enterprise"],
    ),
    "Office Supplies": (
        ["Laptop accessories", "Stationery for office", "Printer cartridges"],
        ["Staples", "Office Depot", "Amazon Business", "Best Buy"],
    ),
    "Entertainment": (
        ["Client entertainment dinner", "Team building activity"],
        ["AMC Theaters", "TopGolf", "Dave & Busters"],
    ),
    "Other": (
        ["Conference registration fee", "Software subscription", "Training materials"],
        ["Microsoft", "Adobe", "Coursera", "LinkedIn Learning"],
    ),
}


def seed_demo_data(store: Repository, rng: random.Random | None = None, expense_count: int = 20) -> dict:
    """Create the demo company, its users, the default rule and sample expenses.

    Idempotent: returns early if the demo admin already exists. Sample
    expenses go through the real workflow; most get a manager decision.
    """
    rng = rng or random.Random()

    existing = store.first(User, lambda u: u.email == DEMO_USERS[0][0])
    if existing is not None:
        logger.info("Demo data already present (company %s), skipping", existing.company_id)
        return {"company_id": existing.company_id, "created": False}

    company = store.create(Company, DEMO_COMPANY)

    hashes: dict[str, str] = {}
    users: dict[str, User] = {}
    for email, full_name, role, password, reports_to in DEMO_USERS:
        if password not in hashes:
            hashes[password] = hash_password(password)
        users[email] = store.create(
            User,
            {
                "email": email,
                "password_hash": hashes[password],
                "full_name": full_name,
                "role": role,
                "company_id": company.id,
                "manager_id": users[reports_to].id if reports_to else None,
            },
        )
        logger.info("Seeded user: %s (%s)", email, role.value)

    rule = store.create(
        ApprovalRule,
        {
            "company_id": company.id,
            "name": "Standard Approval Flow",
            "manager_first": True,
            "sequential_approvers": [],
            "conditional_type": ConditionalType.AMOUNT_THRESHOLD,
            "conditional_value": Decimal("500"),
            "amount_threshold": Decimal("500"),
        },
    )

    employees = [u for u in users.values() if u.role == UserRole.EMPLOYEE]
    now = utcnow()
    for _ in range(expense_count):
        employee = rng.choice(employees)
        category = rng.choice(list(SAMPLE_EXPENSES))
        descriptions, vendors = SAMPLE_EXPENSES[category]
        confidence = round(rng.random() * 0.3 + 0.7, 2)
        expense = create_expense(
            store,
            {
                "amount": Decimal(rng.randint(10, 1009)),
                "currency": "USD",
                "category": category,
                "description": rng.choice(descriptions),
                "vendor": rng.choice(vendors),
                "expense_date": now - timedelta(days=rng.randint(0, 89)),
                "ocr_extracted": confidence > 0.85,
                "ocr_confidence": confidence,
            },
            employee.id,
            company.id,
        )
        outcome = rng.choice((None, ApprovalStatus.APPROVED, ApprovalStatus.REJECTED))
        if outcome is None:
            continue
        comments = (
            "Approved as per company policy."
            if outcome == ApprovalStatus.APPROVED
            else "Please provide more details about this expense."
        )
        for step in expense.approvals:
            decide_approval(store, step.id, step.approver_id, outcome, comments)
            if outcome == ApprovalStatus.REJECTED:
                break

    logger.info("Seeding complete: company=%s rule=%s expenses=%s", company.id, rule.id, expense_count)
    return {"company_id": company.id, "rule_id": rule.id, "created": True}
