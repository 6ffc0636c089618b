import pytest

from app.portal import create_app
from app.portal.models import Base


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret-key-long-enough-for-hs256-signing")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    # Cheapest bcrypt cost; production default stays 10.
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    monkeypatch.delenv("ACCESS_TOKEN_TTL_MINUTES", raising=False)

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()
