"""
Error taxonomy for the portal API.

Services raise these; `create_app()` renders every one of them as the
`{"error": message}` envelope with the class status code.
"""
from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g
from werkzeug.exceptions import HTTPException

from app.portal.config import is_development


class PortalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    status_code = 400


class ConflictError(PortalError):
    status_code = 400


class AuthError(PortalError):
    status_code = 401


class ForbiddenError(PortalError):
    status_code = 403


class NotFoundError(PortalError):
    status_code = 404


class ServiceError(PortalError):
    status_code = 500


def internal_error(exc: BaseException, generic_message: str) -> ServiceError:
    """Detailed message in development, the generic one everywhere else."""
    if is_development(current_app.config.get("ENV")):
        return ServiceError(str(exc) or generic_message)
    return ServiceError(generic_message)


def service_errors(generic_message: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Route decorator: taxonomy errors pass through untouched, anything else is
    logged with its stack trace and re-raised as a ServiceError.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            try:
                return fn(*args, **kwargs)
            except (PortalError, HTTPException):
                raise
            except Exception as e:
                current_app.logger.exception(
                    "%s failed (request_id=%s)", fn.__name__, getattr(g, "request_id", None)
                )
                raise internal_error(e, generic_message) from e

        return wrapped

    return decorator
