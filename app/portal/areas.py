from __future__ import annotations

from flask import Blueprint, g

from app.portal.gate import Area
from app.portal.rbac import require_area

bp = Blueprint("areas", __name__)


def _welcome(area: Area, title: str) -> dict:
    status = g.kyc_status
    return {
        "area": area.value,
        "title": title,
        "role": status.role.value,
        "hasKYC": status.has_kyc,
    }


@bp.get("/surveyor/")
@require_area(Area.SURVEYOR)
def surveyor_index():
    return _welcome(Area.SURVEYOR, "Surveyor Dashboard")


@bp.get("/admin/")
@require_area(Area.ADMIN)
def admin_index():
    return _welcome(Area.ADMIN, "Admin Dashboard")


@bp.get("/manager/")
@require_area(Area.MANAGER)
def manager_index():
    return _welcome(Area.MANAGER, "Manager Dashboard")
