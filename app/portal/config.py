import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    password_hash_rounds: int
    access_token_ttl_minutes: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///portal.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        password_hash_rounds=_getenv_int("PASSWORD_HASH_ROUNDS", 10),
        access_token_ttl_minutes=_getenv_int("ACCESS_TOKEN_TTL_MINUTES", 60 * 12),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "PASSWORD_HASH_ROUNDS": s.password_hash_rounds,
        "ACCESS_TOKEN_TTL_MINUTES": s.access_token_ttl_minutes,
        # JSON bodies only; nothing here needs more than a few KB
        "MAX_CONTENT_LENGTH": 64 * 1024,
    }


def is_development(env: str | None) -> bool:
    return (env or "").strip().lower() in ("dev", "development")


def is_production(env: str | None) -> bool:
    return (env or "").strip().lower() in ("prod", "production")
