"""Tests for signup."""
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.portal.db import session_scope
from app.portal.models import AuditEvent, Role, User


def _payload(**overrides):
    data = {"name": "Jane Doe", "email": "jane@x.com", "password": "secret1", "role": "surveyor"}
    data.update(overrides)
    return data


def _user_count(app) -> int:
    with session_scope(app) as s:
        return s.query(User).count()


def test_signup_creates_user(app, client):
    r = client.post("/api/signup", json=_payload())
    assert r.status_code == 201
    user = r.json["user"]
    assert user["role"] == "SURVEYOR"
    assert user["name"] == "Jane Doe"
    assert user["email"] == "jane@x.com"
    assert set(user) == {"id", "name", "email", "role", "createdAt"}
    assert user["createdAt"].endswith("Z")
    assert _user_count(app) == 1


@pytest.mark.parametrize("role,expected", [("admin", "ADMIN"), ("Manager", "MANAGER"), ("SURVEYOR", "SURVEYOR")])
def test_signup_role_is_upper_cased(client, role, expected):
    r = client.post("/api/signup", json=_payload(role=role))
    assert r.status_code == 201
    assert r.json["user"]["role"] == expected


def test_signup_stores_bcrypt_hash_not_password(app, client):
    client.post("/api/signup", json=_payload())
    with session_scope(app) as s:
        u = s.query(User).one()
        assert u.password_hash.startswith("$2b$")
        assert "secret1" not in u.password_hash
        assert u.role is Role.SURVEYOR


def test_signup_response_never_includes_hash(client):
    r = client.post("/api/signup", json=_payload())
    body = r.get_data(as_text=True)
    assert "password" not in body
    assert "$2b$" not in body


def test_signup_email_is_case_insensitive(app, client):
    assert client.post("/api/signup", json=_payload(email="Jane@X.com")).status_code == 201
    r = client.post("/api/signup", json=_payload(email="jane@x.COM"))
    assert r.status_code == 400
    assert r.json == {"error": "User with this email already exists"}
    assert _user_count(app) == 1


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"name": ""}, "Name is required"),
        ({"name": "x" * 256}, "Name is too long"),
        ({"email": "not-an-email"}, "Invalid email address"),
        ({"password": "12345"}, "Password must be at least 6 characters"),
        ({"role": "owner"}, "Role must be admin, manager, or surveyor"),
        ({"role": None}, "Role must be admin, manager, or surveyor"),
    ],
)
def test_signup_validation(app, client, overrides, message):
    r = client.post("/api/signup", json=_payload(**overrides))
    assert r.status_code == 400
    assert r.json == {"error": message}
    assert _user_count(app) == 0


def test_signup_surfaces_first_failing_field(client):
    r = client.post("/api/signup", json={"name": "", "email": "bad", "password": "1", "role": "x"})
    assert r.status_code == 400
    assert r.json["error"] == "Name is required"


def test_signup_rejects_non_object_body(client):
    r = client.post("/api/signup", data="not json", content_type="application/json")
    assert r.status_code == 400
    assert r.json == {"error": "Invalid input"}


def test_duplicate_signup_conflict_from_store_constraint(app, client, monkeypatch):
    """The unique index decides even when the existence pre-check misses (lost race)."""
    assert client.post("/api/signup", json=_payload()).status_code == 201

    import app.portal.modules.accounts.service as accounts_service

    monkeypatch.setattr(accounts_service, "find_user_by_email", lambda s, email: None)
    r = client.post("/api/signup", json=_payload(name="Other Jane"))
    assert r.status_code == 400
    assert r.json == {"error": "User with this email already exists"}
    assert _user_count(app) == 1


def test_signup_db_unreachable_is_service_error(app, client, monkeypatch):
    def _boom(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(Session, "execute", _boom)
    r = client.post("/api/signup", json=_payload())
    assert r.status_code == 500
    assert r.json == {"error": "Database connection failed. Please check your database configuration."}


def test_signup_unexpected_error_is_generic_outside_development(client, monkeypatch):
    import app.portal.modules.accounts.routes as accounts_routes

    def _boom(s, payload):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(accounts_routes, "signup", _boom)
    r = client.post("/api/signup", json=_payload())
    assert r.status_code == 500
    assert r.json == {"error": "Failed to create user. Please try again."}


def test_signup_unexpected_error_detail_in_development(app, client, monkeypatch):
    import app.portal.modules.accounts.routes as accounts_routes

    def _boom(s, payload):
        raise RuntimeError("disk on fire")

    app.config["ENV"] = "development"
    monkeypatch.setattr(accounts_routes, "signup", _boom)
    r = client.post("/api/signup", json=_payload())
    assert r.status_code == 500
    assert r.json == {"error": "disk on fire"}


def test_signup_is_audited(app, client):
    r = client.post("/api/signup", json=_payload())
    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "auth.signup").one()
        assert ev.actor_user_id == r.json["user"]["id"]
        assert ev.request_id
