from collections.abc import Callable
from functools import wraps
from typing import Any
from urllib.parse import urlencode

from flask import g, redirect, request

from app.portal.auth import current_user_id
from app.portal.constants import LOGIN_PATH
from app.portal.db import db_session
from app.portal.errors import AuthError
from app.portal.gate import Area, GateState, KycGate
from app.portal.modules.kyc.service import check_kyc_status


def require_identity(fn: Callable[..., Any]) -> Callable[..., Any]:
    """401 unless the request carries a valid bearer token."""

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if not current_user_id():
            raise AuthError("Authentication required")
        return fn(*args, **kwargs)

    return wrapped


def require_area(area: Area) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Run the access gate before the view. Authorized → view runs with
    g.kyc_status set; otherwise 302 to wherever the gate points.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            s = db_session()
            decision = KycGate(area, lambda uid: check_kyc_status(s, uid)).run(current_user_id())
            if decision.state is GateState.AUTHORIZED:
                g.kyc_status = decision.status
                return fn(*args, **kwargs)

            target = decision.redirect_to or LOGIN_PATH
            if target == LOGIN_PATH:
                nxt = request.full_path or request.path
                # Avoid trailing '?' from full_path when there is no query string.
                if nxt.endswith("?"):
                    nxt = nxt[:-1]
                target = f"{LOGIN_PATH}?{urlencode({'next': nxt})}"
            return redirect(target)

        return wrapped

    return decorator
