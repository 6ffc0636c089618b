"""
Access gate for protected front-end areas.

Every protected page load runs one gate: CHECKING -> AUTHORIZED, or
CHECKING -> REDIRECTING (login, the KYC form, or the caller's own landing
page). Nothing is cached between runs, so each check costs one status lookup.
"""
from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import assert_never

from app.portal.constants import ADMIN_HOME, KYC_PATH, LOGIN_PATH, MANAGER_HOME, SURVEYOR_HOME
from app.portal.errors import NotFoundError
from app.portal.models import Role


class GateState(str, enum.Enum):
    CHECKING = "checking"
    AUTHORIZED = "authorized"
    REDIRECTING = "redirecting"


class Area(str, enum.Enum):
    SURVEYOR = "surveyor"
    KYC = "kyc"
    ADMIN = "admin"
    MANAGER = "manager"


@dataclass(frozen=True)
class KycStatus:
    role: Role
    has_kyc: bool | None  # None: KYC does not apply to this role

    @property
    def kyc_pending(self) -> bool:
        return self.role.requires_kyc and not self.has_kyc


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    redirect_to: str | None = None
    status: KycStatus | None = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "redirectTo": self.redirect_to,
            "role": self.status.role.value if self.status else None,
            "hasKYC": self.status.has_kyc if self.status else None,
        }


def landing_path(role: Role, has_kyc: bool | None) -> str:
    """Where a freshly logged-in user belongs."""
    if role is Role.ADMIN:
        return ADMIN_HOME
    if role is Role.MANAGER:
        return MANAGER_HOME
    if role is Role.SURVEYOR:
        return SURVEYOR_HOME if has_kyc else KYC_PATH
    assert_never(role)


def required_redirect(area: Area, status: KycStatus) -> str | None:
    """None when `status` may enter `area`, else the path to send it to."""
    role = status.role
    if area is Area.SURVEYOR:
        return KYC_PATH if status.kyc_pending else None
    if area is Area.KYC:
        if role is Role.SURVEYOR:
            return SURVEYOR_HOME if status.has_kyc else None
        if role is Role.ADMIN or role is Role.MANAGER:
            return LOGIN_PATH
        assert_never(role)
    if area is Area.ADMIN:
        return None if role is Role.ADMIN else landing_path(role, status.has_kyc)
    if area is Area.MANAGER:
        return None if role is Role.MANAGER else landing_path(role, status.has_kyc)
    assert_never(area)


class KycGate:
    """
    One-shot gate run. `lookup` resolves a user id to its KycStatus and
    raises NotFoundError for unknown ids.
    """

    def __init__(self, area: Area, lookup: Callable[[str], KycStatus]):
        self.area = area
        self._lookup = lookup
        self.state = GateState.CHECKING

    def run(self, user_id: str | None) -> GateDecision:
        if self.state is not GateState.CHECKING:
            raise RuntimeError(f"Gate for {self.area.value!r} already ran (state={self.state.value}).")
        if not user_id:
            return self._finish(GateDecision(GateState.REDIRECTING, LOGIN_PATH))
        try:
            status = self._lookup(user_id)
        except NotFoundError:
            # Identity points at a user that no longer exists.
            return self._finish(GateDecision(GateState.REDIRECTING, LOGIN_PATH))

        target = required_redirect(self.area, status)
        if target is None:
            return self._finish(GateDecision(GateState.AUTHORIZED, None, status))
        return self._finish(GateDecision(GateState.REDIRECTING, target, status))

    def _finish(self, decision: GateDecision) -> GateDecision:
        self.state = decision.state
        return decision
