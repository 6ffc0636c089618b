from __future__ import annotations

from flask import Blueprint, current_app, request

from app.portal.auth import current_user_id
from app.portal.constants import INVALID_CREDENTIALS_MESSAGE
from app.portal.db import db_session, unique_violation_as_conflict
from app.portal.errors import AuthError, service_errors
from app.portal.gate import landing_path
from app.portal.models import User
from app.portal.modules.accounts.service import EMAIL_TAKEN_MESSAGE, authenticate, public_user, signup
from app.portal.modules.kyc.service import kyc_status_for
from app.portal.rbac import require_identity
from app.portal.security import create_access_token
from app.portal.utils import json_body, text_field

bp = Blueprint("accounts", __name__)


@bp.post("/signup")
@service_errors("Failed to create user. Please try again.")
def signup_post():
    payload = json_body(request.get_json(silent=True))
    current_app.logger.info(
        "Signup request received (has_name=%s has_email=%s has_password=%s role=%s)",
        bool(payload.get("name")),
        bool(payload.get("email")),
        bool(payload.get("password")),
        text_field(payload, "role") or None,
    )

    s = db_session()
    user = signup(s, payload)
    with unique_violation_as_conflict(s, EMAIL_TAKEN_MESSAGE):
        s.commit()

    return {"message": "User created successfully", "user": public_user(user)}, 201


@bp.post("/login")
@service_errors("Failed to login")
def login_post():
    payload = json_body(request.get_json(silent=True))

    s = db_session()
    user = authenticate(s, payload)
    if user is None:
        # Keep the failed-attempt audit row.
        s.commit()
        raise AuthError(INVALID_CREDENTIALS_MESSAGE)

    status = kyc_status_for(s, user)
    s.commit()

    return {
        "message": "Login successful",
        "user": public_user(user, with_created_at=False),
        "role": user.role.value,
        "hasKYC": status.has_kyc,  # None for roles without KYC
        "token": create_access_token(user.id, user.role.value),
        "redirectTo": landing_path(user.role, status.has_kyc),
    }


@bp.get("/auth/me")
@require_identity
@service_errors("Failed to load user")
def me():
    s = db_session()
    user = s.get(User, current_user_id())
    if user is None:
        raise AuthError("Authentication required")
    status = kyc_status_for(s, user)
    return {"user": public_user(user, with_created_at=False), "hasKYC": status.has_kyc}
