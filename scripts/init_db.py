import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.portal.models import Role, User
from app.portal.security import hash_password
from scripts._db_utils import script_session


def seed_only(*, database_url: str | None = None, create_tables: bool = False) -> bool:
    """
    Seed the first ADMIN account in an idempotent way.
    Does NOT overwrite an existing user with the same email (whatever its role).
    Returns True when a user was created.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@surveyorportal.io").strip().lower()
    admin_name = (os.environ.get("ADMIN_NAME") or "Administrator").strip()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    rounds = int((os.environ.get("PASSWORD_HASH_ROUNDS") or "10").strip())

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///portal.db").strip()

    created = False
    with script_session(db_url, create_tables=create_tables) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            s.add(
                User(
                    name=admin_name,
                    email=admin_email,
                    password_hash=hash_password(admin_password, rounds=rounds),
                    role=Role.ADMIN,
                )
            )
            created = True

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email} ({'created' if created else 'already present'})")
    print("Admin password: (from ADMIN_PASSWORD)")
    return created


def main() -> None:
    # Local/dev bootstrap: create tables directly; release.py uses alembic instead.
    seed_only(database_url=None, create_tables=True)


if __name__ == "__main__":
    main()
