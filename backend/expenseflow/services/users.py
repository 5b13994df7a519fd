"""User administration, the manager tree, signup and credential checks."""
import logging
from typing import Any

from expenseflow.core.errors import (
    ConflictError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from expenseflow.core.security import hash_password, verify_password
from expenseflow.db.base import parse_payload
from expenseflow.db.store import Repository
from expenseflow.models import APPROVER_ROLES, Company, User, UserRole
from expenseflow.schemas.user import (
    SignupRequest,
    UserCreate,
    UserOut,
    UserStatsOut,
    UserUpdate,
)
from expenseflow.services.countries import get_currency_for_country
from expenseflow.services.queries import find_user_by_email, find_user_by_id

logger = logging.getLogger(__name__)


# ─── Manager tree ───

def would_create_cycle(store: Repository, user_id: str, manager_id: str) -> bool:
    """True if making ``manager_id`` the manager of ``user_id`` closes a loop.

    Walks the ancestors of ``manager_id``; reaching ``user_id`` (or revisiting
    any node of a pre-existing loop) means the assignment is unsafe.
    """
    seen: set[str] = set()
    current: str | None = manager_id
    while current is not None:
        if current == user_id or current in seen:
            return True
        seen.add(current)
        node = store.find(User, current)
        current = node.manager_id if node is not None else None
    return False


def validate_manager(store: Repository, user_id: str | None, company_id: str, manager_id: str) -> User:
    """A manager must be an active MANAGER/ADMIN of the same company, outside the user's own subtree."""
    manager = store.find(User, manager_id)
    if (
        manager is None
        or not manager.is_active
        or manager.company_id != company_id
        or manager.role not in APPROVER_ROLES
    ):
        raise ValidationError("Selected manager is not valid")
    if user_id is not None and would_create_cycle(store, user_id, manager_id):
        raise ValidationError("Manager assignment would create a reporting cycle")
    return manager


def _ensure_email_free(store: Repository, email: str) -> None:
    if find_user_by_email(store, email) is not None:
        raise ConflictError("A user with this email already exists")


def _view(store: Repository, user_id: str) -> UserOut:
    user = find_user_by_id(store, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


# ─── CRUD ───

def _check_not_self(user_id: str, actor_id: str | None) -> None:
    if actor_id is None:
        raise ValidationError("Deactivating a user requires the acting user")
    if user_id == actor_id:
        raise InvalidStateError("You cannot delete your own account")


def create_user(store: Repository, company_id: str, data: UserCreate | dict[str, Any]) -> UserOut:
    """Create an active user in ``company_id`` with a bcrypt-hashed password."""
    body = parse_payload(UserCreate, data)
    store.get(Company, company_id)
    email = body.email.lower()
    _ensure_email_free(store, email)
    if body.manager_id:
        validate_manager(store, None, company_id, body.manager_id)

    user = store.create(
        User,
        {
            "email": email,
            "password_hash": hash_password(body.password),
            "full_name": body.full_name.strip(),
            "role": body.role,
            "company_id": company_id,
            "manager_id": body.manager_id,
            "avatar": body.avatar,
            "is_active": True,
        },
    )
    logger.info("User %s created in company %s with role %s", user.id, company_id, user.role.value)
    return _view(store, user.id)


def update_user(
    store: Repository,
    user_id: str,
    company_id: str,
    patch: UserUpdate | dict[str, Any],
    actor_id: str | None = None,
) -> UserOut:
    """Apply a profile patch. ``is_active=False`` deactivates through ``deactivate_user``."""
    user = store.find(User, user_id)
    if user is None or not user.is_active or user.company_id != company_id:
        raise NotFoundError("User not found or access denied")

    changes = parse_payload(UserUpdate, patch).model_dump(exclude_unset=True)
    # active users only reach this point, so is_active=True is a no-op
    deactivate = changes.pop("is_active", None) is False
    if deactivate:
        _check_not_self(user_id, actor_id)
    if changes.get("manager_id"):
        validate_manager(store, user_id, company_id, changes["manager_id"])
    if changes.get("full_name"):
        changes["full_name"] = changes["full_name"].strip()

    store.update_by_id(User, user_id, changes)
    logger.info("User %s updated: %s", user_id, sorted(changes))
    if deactivate:
        deactivated = deactivate_user(store, user_id, actor_id, company_id)
        return UserOut(**deactivated.model_dump(), company=store.find(Company, company_id))
    return _view(store, user_id)


def deactivate_user(store: Repository, user_id: str, actor_id: str, company_id: str) -> User:
    """Soft delete. An admin cannot deactivate their own account."""
    user = store.find(User, user_id)
    if user is None or not user.is_active or user.company_id != company_id:
        raise NotFoundError("User not found or access denied")
    _check_not_self(user_id, actor_id)
    deactivated = store.soft_delete(User, user_id)
    logger.info("User %s deactivated by %s", user_id, actor_id)
    return deactivated


def user_stats(store: Repository, company_id: str) -> UserStatsOut:
    users = store.query(User, lambda u: u.company_id == company_id)
    active = [u for u in users if u.is_active]
    return UserStatsOut(
        total=len(users),
        admins=sum(1 for u in active if u.role == UserRole.ADMIN),
        managers=sum(1 for u in active if u.role == UserRole.MANAGER),
        employees=sum(1 for u in active if u.role == UserRole.EMPLOYEE),
        active=len(active),
        inactive=len(users) - len(active),
    )


# ─── Signup / credentials ───

def signup(store: Repository, data: SignupRequest | dict[str, Any]) -> tuple[Company, UserOut]:
    """Create a company and its first ADMIN user.

    The two creates go through ``run_batch``; if the user create fails the
    company is left behind (no rollback).
    """
    body = parse_payload(SignupRequest, data)
    email = body.email.lower()
    _ensure_email_free(store, email)

    password_hash = hash_password(body.password)
    company, user = store.run_batch([
        (Company, {
            "name": body.company_name.strip(),
            "country": body.country,
            "base_currency": get_currency_for_country(body.country),
        }),
        (User, lambda created: {
            "email": email,
            "password_hash": password_hash,
            "full_name": body.full_name.strip(),
            "role": UserRole.ADMIN,
            "company_id": created[0].id,
        }),
    ])
    logger.info("Company %s signed up with admin %s", company.id, user.id)
    return company, _view(store, user.id)


def authenticate(store: Repository, email: str, password: str) -> UserOut:
    """Return the active user whose password matches, else NotAuthorizedError."""
    user = find_user_by_email(store, email)
    if user is None:
        raise NotAuthorizedError("Email or password is incorrect")
    try:
        valid = verify_password(password, user.password_hash)
    except ValueError:
        logger.warning("User %s has an unrecognised password hash", user.id)
        valid = False
    if not valid:
        raise NotAuthorizedError("Email or password is incorrect")
    return user
