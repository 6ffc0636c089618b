import logging
import os

from flask import Flask, g, request
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.portal.config import is_production, load_config
from app.portal.db import init_db, rollback_db_session, teardown_db_session
from app.portal.errors import PortalError, internal_error
from app.portal.routes import bp as routes_bp
from app.portal.auth import bp as auth_bp, load_current_identity
from app.portal.areas import bp as areas_bp
from app.portal.modules.accounts.routes import bp as accounts_bp
from app.portal.modules.kyc.routes import bp as kyc_bp

API_PREFIX = "/api"


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = False
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")

    # Production guardrails (fail fast with clear logs)
    if is_production(app.config.get("ENV")):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(accounts_bp, url_prefix=API_PREFIX)
    app.register_blueprint(kyc_bp, url_prefix=API_PREFIX)
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(areas_bp)

    def _load_identity_wrapper():
        if request.path.startswith(("/health", "/healthz")):
            g.identity = None
            return None
        return load_current_identity()

    app.before_request(_load_identity_wrapper)
    app.teardown_appcontext(teardown_db_session)

    @app.after_request
    def _tag_request_id(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers["X-Request-ID"] = rid
        return response

    @app.errorhandler(PortalError)
    def _err_portal(e: PortalError):
        rollback_db_session()
        log = app.logger.error if e.status_code >= 500 else app.logger.info
        log(
            "%s %s -> %s %s: %s (request_id=%s)",
            request.method,
            request.path,
            e.status_code,
            type(e).__name__,
            e.message,
            getattr(g, "request_id", None),
        )
        return {"error": e.message}, e.status_code

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):
        return {"error": e.description or e.name}, e.code or 500

    @app.errorhandler(Exception)
    def _err_500(e: Exception):
        # Ensure stack trace shows in logs.
        rollback_db_session()
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return {"error": internal_error(e, "An unexpected error occurred").message}, 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
