"""
Release step for a deploy: bring the schema to head, then make sure an
ADMIN account exists.

  python scripts/release.py

DATABASE_URL is required here even though the app itself would fall back
to a local sqlite file.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def alembic_config(database_url: str) -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def run_release(*, database_url: str | None = None) -> bool:
    """Migrate and seed. Returns True when an admin account was created."""
    database_url = (database_url or os.environ.get("DATABASE_URL") or "").strip()
    if not database_url:
        raise RuntimeError("DATABASE_URL must be set for a release.")

    env = (os.environ.get("ENV") or "development").strip().lower()
    if env in ("prod", "production") and database_url.startswith("sqlite"):
        raise RuntimeError("Refusing to release a production build against sqlite.")

    print(f"[release] env={env} upgrading schema to head", flush=True)
    command.upgrade(alembic_config(database_url), "head")

    from scripts import init_db

    created = init_db.seed_only(database_url=database_url)
    print(f"[release] admin {'created' if created else 'already present'}", flush=True)
    return created


if __name__ == "__main__":
    run_release()
