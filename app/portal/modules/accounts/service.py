from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from flask import current_app

from app.portal.audit import record_event
from app.portal.constants import NAME_MAX_LENGTH, PASSWORD_MIN_LENGTH
from app.portal.db import ensure_store_available, unique_violation_as_conflict
from app.portal.errors import ConflictError
from app.portal.models import Role, User
from app.portal.security import hash_password, verify_password
from app.portal.utils import check_length, first_error, is_valid_email, iso, normalize_email, text_field

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "User with this email already exists"
ROLE_MESSAGE = "Role must be admin, manager, or surveyor"


def validate_signup_payload(payload: dict) -> list[str]:
    """Validate signup payload in field order. Returns list of errors."""
    errors = []
    name_error = check_length(text_field(payload, "name").strip(), label="Name", max_length=NAME_MAX_LENGTH)
    if name_error:
        errors.append(name_error)
    if not is_valid_email(text_field(payload, "email").strip()):
        errors.append("Invalid email address")
    if len(text_field(payload, "password")) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    try:
        Role.parse(text_field(payload, "role"))
    except ValueError:
        errors.append(ROLE_MESSAGE)
    return errors


def validate_login_payload(payload: dict) -> list[str]:
    errors = []
    if not is_valid_email(text_field(payload, "email").strip()):
        errors.append("Invalid email address")
    if not text_field(payload, "password"):
        errors.append("Password is required")
    return errors


def find_user_by_email(s: "Session", email: str) -> User | None:
    return s.query(User).filter(User.email == normalize_email(email)).one_or_none()


def public_user(user: User, *, with_created_at: bool = True) -> dict:
    data = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
    }
    if with_created_at:
        data["createdAt"] = iso(user.created_at)
    return data


def signup(s: "Session", payload: dict) -> User:
    """
    Create a user. The caller commits (inside unique_violation_as_conflict):
    the existence check below is only a fast path, the unique index on
    users.email decides.
    """
    first_error(validate_signup_payload(payload))

    name = text_field(payload, "name").strip()
    email = normalize_email(text_field(payload, "email"))
    role = Role.parse(text_field(payload, "role"))

    ensure_store_available(s)

    if find_user_by_email(s, email) is not None:
        logger.info("Signup attempt with existing email: %s", email)
        raise ConflictError(EMAIL_TAKEN_MESSAGE)

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(text_field(payload, "password")),
        role=role,
    )
    with unique_violation_as_conflict(s, EMAIL_TAKEN_MESSAGE):
        s.add(user)
        s.flush()

    record_event(
        s,
        actor=user,
        action="auth.signup",
        entity_type="User",
        entity_id=user.id,
        metadata={"role": role.value},
    )
    logger.info("User created: %s (%s)", user.email, role.value)
    return user


@lru_cache(maxsize=8)
def _decoy_hash(rounds: int) -> str:
    # Unknown emails still pay for one bcrypt comparison at the configured cost.
    return hash_password("decoy-password-never-matches", rounds=rounds)


def authenticate(s: "Session", payload: dict) -> User | None:
    """
    Returns the user for valid credentials, None otherwise. Failures are
    recorded to the audit trail (caller commits) but never distinguished.
    """
    first_error(validate_login_payload(payload))

    email = normalize_email(text_field(payload, "email"))
    password = text_field(payload, "password")

    user = find_user_by_email(s, email)
    if user is None:
        verify_password(password, _decoy_hash(int(current_app.config.get("PASSWORD_HASH_ROUNDS", 10))))
        reason = "unknown email"
    elif not user.password_hash:
        reason = "no password set"
    elif not verify_password(password, user.password_hash):
        reason = "wrong password"
    else:
        record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=user.id)
        logger.info("User logged in: %s (%s)", user.email, user.role.value)
        return user

    logger.info("Login failed for %s: %s", email, reason)
    record_event(
        s,
        actor=None,
        action="auth.login_failed",
        entity_type="User",
        entity_id=email[:128],
        reason="Invalid credentials",
        metadata={"email": email},
    )
    return None
