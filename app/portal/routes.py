from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from app.portal.db import db_session

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON; 503 when the database is unreachable."""
    try:
        db_session().execute(text("SELECT 1"))
    except DBAPIError as e:
        current_app.logger.error("Health check: database unreachable: %s", e)
        return {"ok": False, "database": "unreachable"}, 503
    return {"ok": True, "database": "ok"}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for k8s/DO probes. No DB access, minimal overhead.
    """
    return "ok", 200
