"""Tests for KYC submission and status lookups."""
import uuid

import pytest

from app.portal.db import session_scope
from app.portal.models import AuditEvent, KycRecord

AADHAR = "123456789012"


def _signup(client, role="surveyor", email="jane@x.com"):
    r = client.post(
        "/api/signup",
        json={"name": "Jane Doe", "email": email, "password": "secret1", "role": role},
    )
    assert r.status_code == 201
    return r.json["user"]["id"]


def _kyc(user_id, **overrides):
    data = {
        "userId": user_id,
        "aadharName": "Jane Doe",
        "aadharNumber": AADHAR,
        "phoneNumber": "9876543210",
        "address": "1 Main St",
    }
    data.update(overrides)
    return data


def _kyc_count(app) -> int:
    with session_scope(app) as s:
        return s.query(KycRecord).count()


def test_submit_kyc(app, client):
    user_id = _signup(client)
    r = client.post("/api/kyc", json=_kyc(user_id))
    assert r.status_code == 201
    kyc = r.json["kyc"]
    assert kyc["userId"] == user_id
    assert kyc["aadharName"] == "Jane Doe"
    assert kyc["phoneNumber"] == "9876543210"
    assert kyc["createdAt"].endswith("Z")
    assert set(kyc) == {"id", "userId", "aadharName", "phoneNumber", "createdAt"}
    assert AADHAR not in r.get_data(as_text=True)
    assert _kyc_count(app) == 1


def test_submit_kyc_twice_is_conflict(app, client):
    user_id = _signup(client)
    assert client.post("/api/kyc", json=_kyc(user_id)).status_code == 201

    r = client.post("/api/kyc", json=_kyc(user_id, aadharName="Someone Else"))
    assert r.status_code == 400
    assert r.json == {"error": "KYC has already been submitted. You cannot submit it again."}
    assert _kyc_count(app) == 1


def test_concurrent_duplicate_loses_on_unique_constraint(app, client, monkeypatch):
    """Two submissions that both pass the pre-check: the store keeps one."""
    user_id = _signup(client)
    assert client.post("/api/kyc", json=_kyc(user_id)).status_code == 201

    import app.portal.modules.kyc.service as kyc_service

    monkeypatch.setattr(kyc_service, "find_kyc_for_user", lambda s, uid: None)
    r = client.post("/api/kyc", json=_kyc(user_id))
    assert r.status_code == 400
    assert r.json == {"error": "KYC has already been submitted for this user"}

    assert _kyc_count(app) == 1


@pytest.mark.parametrize("role", ["admin", "manager"])
def test_non_surveyor_is_forbidden(app, client, role):
    user_id = _signup(client, role=role, email=f"{role}@x.com")
    r = client.post("/api/kyc", json=_kyc(user_id))
    assert r.status_code == 403
    assert r.json == {"error": "KYC submission is only available for SURVEYOR users"}
    assert _kyc_count(app) == 0


def test_unknown_user_is_not_found(client):
    r = client.post("/api/kyc", json=_kyc(str(uuid.uuid4())))
    assert r.status_code == 404
    assert r.json == {"error": "User not found"}


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"userId": "42"}, "Invalid user ID"),
        ({"aadharName": ""}, "Aadhar name is required"),
        ({"aadharName": "x" * 256}, "Aadhar name is too long"),
        ({"aadharNumber": "12345678901"}, "Aadhar number must be 12 digits"),
        ({"aadharNumber": "1234567890123"}, "Aadhar number must be 12 digits"),
        ({"aadharNumber": "12345678901a"}, "Aadhar number must contain only digits"),
        ({"aadharNumber": " 123456789012 "}, "Aadhar number must be 12 digits"),
        ({"aadharNumber": "12345678901 "}, "Aadhar number must contain only digits"),
        ({"phoneNumber": "987654321"}, "Phone number must be at least 10 digits"),
        ({"phoneNumber": "9" * 16}, "Phone number is too long"),
        ({"phoneNumber": "+919876543210"}, "Phone number must contain only digits"),
        ({"phoneNumber": " 9876543210 "}, "Phone number must contain only digits"),
        ({"address": ""}, "Address is required"),
        ({"address": "a" * 501}, "Address is too long"),
    ],
)
def test_kyc_validation(app, client, overrides, message):
    user_id = _signup(client)
    payload = _kyc(user_id, **overrides)
    r = client.post("/api/kyc", json=payload)
    assert r.status_code == 400
    assert r.json == {"error": message}
    assert _kyc_count(app) == 0


def test_kyc_accepts_boundary_lengths(client):
    user_id = _signup(client)
    r = client.post("/api/kyc", json=_kyc(user_id, phoneNumber="9" * 15, address="a" * 500))
    assert r.status_code == 201


def test_submission_is_audited(app, client):
    user_id = _signup(client)
    r = client.post("/api/kyc", json=_kyc(user_id))
    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "kyc.submit").one()
        assert ev.actor_user_id == user_id
        assert ev.entity_id == r.json["kyc"]["id"]


def test_get_kyc_record(client):
    user_id = _signup(client)

    r = client.get(f"/api/kyc?userId={user_id}")
    assert r.status_code == 200
    assert r.json == {"exists": False, "kyc": None}

    client.post("/api/kyc", json=_kyc(user_id))
    r = client.get(f"/api/kyc?userId={user_id}")
    assert r.status_code == 200
    assert r.json["exists"] is True
    assert r.json["kyc"]["userId"] == user_id
    assert AADHAR not in r.get_data(as_text=True)


def test_get_kyc_requires_user_id(client):
    r = client.get("/api/kyc")
    assert r.status_code == 400
    assert r.json == {"error": "User ID is required"}


def test_check_kyc_status(client):
    surveyor_id = _signup(client)
    admin_id = _signup(client, role="admin", email="boss@x.com")

    r = client.get(f"/api/auth/check-kyc?userId={surveyor_id}")
    assert r.status_code == 200
    assert r.json == {"hasKYC": False, "role": "SURVEYOR"}

    client.post("/api/kyc", json=_kyc(surveyor_id))
    r = client.get(f"/api/auth/check-kyc?userId={surveyor_id}")
    assert r.json == {"hasKYC": True, "role": "SURVEYOR"}

    r = client.get(f"/api/auth/check-kyc?userId={admin_id}")
    assert r.json == {"hasKYC": None, "role": "ADMIN"}


def test_check_kyc_errors(client):
    r = client.get("/api/auth/check-kyc")
    assert r.status_code == 400
    assert r.json == {"error": "User ID is required"}

    r = client.get(f"/api/auth/check-kyc?userId={uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json == {"error": "User not found"}


def _bearer(client, email):
    r = client.post("/api/login", json={"email": email, "password": "secret1"})
    return {"Authorization": f"Bearer {r.json['token']}"}


def test_token_holder_can_only_submit_own_kyc(app, client):
    jane_id = _signup(client)
    _signup(client, email="mallory@x.com")
    mallory = _bearer(client, "mallory@x.com")

    r = client.post("/api/kyc", json=_kyc(jane_id), headers=mallory)
    assert r.status_code == 403
    assert r.json == {"error": "You can only submit KYC for your own account"}
    assert _kyc_count(app) == 0

    r = client.post("/api/kyc", json=_kyc(jane_id), headers=_bearer(client, "jane@x.com"))
    assert r.status_code == 201
    assert _kyc_count(app) == 1
