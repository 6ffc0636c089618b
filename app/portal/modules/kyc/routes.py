from __future__ import annotations

from flask import Blueprint, current_app, request

from app.portal.auth import current_user_id
from app.portal.db import db_session, unique_violation_as_conflict
from app.portal.errors import ValidationError, service_errors
from app.portal.modules.kyc.service import DUPLICATE_RECORD_MESSAGE, find_kyc_for_user, public_kyc, submit_kyc
from app.portal.utils import json_body

bp = Blueprint("kyc", __name__)


@bp.post("/kyc")
@service_errors("Failed to submit KYC. Please try again.")
def kyc_post():
    payload = json_body(request.get_json(silent=True))
    current_app.logger.info(
        "KYC submission request received (fields=%s)",
        sorted(k for k in ("userId", "aadharName", "aadharNumber", "phoneNumber", "address") if payload.get(k)),
    )

    s = db_session()
    record = submit_kyc(s, payload, caller_id=current_user_id())
    with unique_violation_as_conflict(s, DUPLICATE_RECORD_MESSAGE):
        s.commit()

    return {"message": "KYC submitted successfully", "kyc": public_kyc(record)}, 201


@bp.get("/kyc")
@service_errors("Failed to check KYC status")
def kyc_get():
    user_id = (request.args.get("userId") or "").strip()
    if not user_id:
        raise ValidationError("User ID is required")

    record = find_kyc_for_user(db_session(), user_id)
    return {"exists": record is not None, "kyc": public_kyc(record) if record else None}
