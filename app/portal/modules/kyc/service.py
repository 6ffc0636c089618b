from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.portal.audit import record_event
from app.portal.constants import (
    AADHAR_NAME_MAX_LENGTH,
    AADHAR_NUMBER_LENGTH,
    ADDRESS_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    PHONE_MIN_LENGTH,
)
from app.portal.db import ensure_store_available, unique_violation_as_conflict
from app.portal.errors import ConflictError, ForbiddenError, NotFoundError
from app.portal.gate import KycStatus
from app.portal.models import Role, User
from app.portal.modules.kyc.models import KycRecord
from app.portal.utils import check_length, first_error, is_uuid, iso, text_field

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ALREADY_SUBMITTED_MESSAGE = "KYC has already been submitted. You cannot submit it again."
DUPLICATE_RECORD_MESSAGE = "KYC has already been submitted for this user"
SURVEYOR_ONLY_MESSAGE = "KYC submission is only available for SURVEYOR users"
USER_NOT_FOUND_MESSAGE = "User not found"
OWN_ACCOUNT_MESSAGE = "You can only submit KYC for your own account"


def validate_kyc_payload(payload: dict) -> list[str]:
    """Validate KYC submission payload in field order. Returns list of errors."""
    errors = []

    if not is_uuid(text_field(payload, "userId")):
        errors.append("Invalid user ID")

    name_error = check_length(
        text_field(payload, "aadharName").strip(), label="Aadhar name", max_length=AADHAR_NAME_MAX_LENGTH
    )
    if name_error:
        errors.append(name_error)

    aadhar_number = text_field(payload, "aadharNumber")
    if len(aadhar_number) != AADHAR_NUMBER_LENGTH:
        errors.append(f"Aadhar number must be {AADHAR_NUMBER_LENGTH} digits")
    elif not aadhar_number.isascii() or not aadhar_number.isdigit():
        errors.append("Aadhar number must contain only digits")

    phone = text_field(payload, "phoneNumber")
    if len(phone) < PHONE_MIN_LENGTH:
        errors.append(f"Phone number must be at least {PHONE_MIN_LENGTH} digits")
    elif len(phone) > PHONE_MAX_LENGTH:
        errors.append("Phone number is too long")
    elif not phone.isascii() or not phone.isdigit():
        errors.append("Phone number must contain only digits")

    address_error = check_length(text_field(payload, "address").strip(), label="Address", max_length=ADDRESS_MAX_LENGTH)
    if address_error:
        errors.append(address_error)

    return errors


def find_kyc_for_user(s: "Session", user_id: str) -> KycRecord | None:
    return s.query(KycRecord).filter(KycRecord.user_id == user_id).one_or_none()


def public_kyc(record: KycRecord) -> dict:
    """Client-facing view; the Aadhar number and address stay server-side."""
    return {
        "id": record.id,
        "userId": record.user_id,
        "aadharName": record.aadhar_name,
        "phoneNumber": record.phone_number,
        "createdAt": iso(record.created_at),
    }


def kyc_status_for(s: "Session", user: User) -> KycStatus:
    has_kyc = find_kyc_for_user(s, user.id) is not None
    return KycStatus(role=user.role, has_kyc=user.role.kyc_flag(has_kyc))


def check_kyc_status(s: "Session", user_id: str) -> KycStatus:
    user = s.get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return kyc_status_for(s, user)


def submit_kyc(s: "Session", payload: dict, *, caller_id: str | None = None) -> KycRecord:
    """
    Create the one KYC record for a Surveyor. Not idempotent: a retry after a
    committed submission is rejected as already submitted. The caller commits
    inside unique_violation_as_conflict.

    caller_id is the bearer identity, if any; it must match userId.
    """
    first_error(validate_kyc_payload(payload))
    user_id = text_field(payload, "userId")

    if caller_id is not None and caller_id != user_id:
        logger.warning("KYC submission by %s for another user %s", caller_id, user_id)
        raise ForbiddenError(OWN_ACCOUNT_MESSAGE)

    user = s.get(User, user_id)
    if user is None:
        logger.warning("KYC submission for non-existent user: %s", user_id)
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)

    if user.role is not Role.SURVEYOR:
        logger.warning("KYC submission attempted by %s user %s", user.role.value, user_id)
        raise ForbiddenError(SURVEYOR_ONLY_MESSAGE)

    if find_kyc_for_user(s, user_id) is not None:
        logger.info("KYC already exists for user: %s", user_id)
        raise ConflictError(ALREADY_SUBMITTED_MESSAGE)

    ensure_store_available(s)

    record = KycRecord(
        user_id=user_id,
        aadhar_name=text_field(payload, "aadharName").strip(),
        aadhar_number=text_field(payload, "aadharNumber"),
        phone_number=text_field(payload, "phoneNumber"),
        address=text_field(payload, "address").strip(),
    )
    with unique_violation_as_conflict(s, DUPLICATE_RECORD_MESSAGE):
        s.add(record)
        s.flush()

    record_event(
        s,
        actor=user,
        action="kyc.submit",
        entity_type="KycRecord",
        entity_id=record.id,
    )
    logger.info("KYC created for user: %s", user_id)
    return record
