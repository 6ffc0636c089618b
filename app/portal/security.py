from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
from flask import current_app

from app.portal.constants import BCRYPT_MAX_PASSWORD_BYTES

TOKEN_ALGORITHM = "HS256"


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Salted bcrypt hash; cost comes from PASSWORD_HASH_ROUNDS unless given."""
    if rounds is None:
        rounds = int(current_app.config.get("PASSWORD_HASH_ROUNDS", 10))
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        # Not a bcrypt hash (corrupt row or foreign scheme).
        current_app.logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(user_id: str, role: str, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=int(current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 720)))
    now = datetime.now(timezone.utc)
    claims = {"sub": user_id, "role": role, "iat": now, "exp": now + expires_delta}
    return jwt.encode(claims, current_app.config["SECRET_KEY"], algorithm=TOKEN_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Claims for a valid, unexpired token; None otherwise."""
    try:
        claims = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=[TOKEN_ALGORITHM])
    except jwt.PyJWTError as e:
        current_app.logger.info("Rejected access token: %s", e)
        return None
    if not claims.get("sub"):
        return None
    return claims


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
