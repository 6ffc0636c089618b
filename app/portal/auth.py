from __future__ import annotations

import uuid
from dataclasses import dataclass

from flask import Blueprint, current_app, g, request

from app.portal.db import db_session
from app.portal.errors import ValidationError, service_errors
from app.portal.gate import Area, KycGate
from app.portal.modules.kyc.service import check_kyc_status
from app.portal.security import bearer_token, decode_access_token

bp = Blueprint("auth", __name__)


@dataclass(frozen=True)
class Identity:
    """Who the bearer token says is calling. Role is always re-read from the store."""

    user_id: str


def load_current_identity() -> None:
    """
    Loads g.identity from the `Authorization: Bearer` header.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.identity = None

    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        return
    claims = decode_access_token(token)
    if claims is None:
        return
    g.identity = Identity(user_id=str(claims["sub"]))


def current_user_id() -> str | None:
    identity: Identity | None = getattr(g, "identity", None)
    return identity.user_id if identity else None


def _required_user_id() -> str:
    user_id = (request.args.get("userId") or "").strip()
    if not user_id:
        raise ValidationError("User ID is required")
    return user_id


@bp.get("/check-kyc")
@service_errors("Failed to check KYC status")
def check_kyc():
    status = check_kyc_status(db_session(), _required_user_id())
    return {"hasKYC": status.has_kyc, "role": status.role.value}


@bp.get("/gate")
@service_errors("Failed to check access")
def gate():
    raw_area = (request.args.get("area") or "").strip().lower()
    try:
        area = Area(raw_area)
    except ValueError:
        raise ValidationError(f"Unknown area. Must be one of: {', '.join(a.value for a in Area)}")

    s = db_session()
    decision = KycGate(area, lambda uid: check_kyc_status(s, uid)).run(current_user_id())
    current_app.logger.debug(
        "Gate %s -> %s (redirect=%s request_id=%s)",
        area.value,
        decision.state.value,
        decision.redirect_to,
        g.request_id,
    )
    return decision.to_dict()
