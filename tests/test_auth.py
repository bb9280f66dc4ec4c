import hashlib
from datetime import datetime, timedelta

from ecofinds.models.log import Log
from ecofinds.models.users import User
from tests.conftest import DEFAULT_PASSWORD, register_user


def test_register_returns_token_and_user(client):
    headers, user = register_user(client, "Anna.Smith@EcoFinds.io", "Anna", "Smith")

    assert user["email"] == "anna.smith@ecofinds.io"
    assert user["role"] == "user"
    assert "password_hash" not in user

    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["first_name"] == "Anna"


def test_register_duplicate_email_conflicts(client):
    register_user(client, "dup@ecofinds.io")
    res = client.post("/auth/register", json={
        "email": "DUP@ecofinds.io",
        "password": DEFAULT_PASSWORD,
        "first_name": "Other",
        "last_name": "Person",
    })
    assert res.status_code == 409
    assert res.json()["detail"] == "Email already registered"


def test_register_weak_password_is_field_scoped_400(client):
    res = client.post("/auth/register", json={
        "email": "weak@ecofinds.io",
        "password": "abcdef",
        "first_name": "Weak",
        "last_name": "Password",
    })
    assert res.status_code == 400
    body = res.json()
    assert body["detail"] == "Validation failed"
    fields = {e["field"]: e["message"] for e in body["errors"]}
    assert "password" in fields
    assert fields["password"].startswith("Password must contain")


def test_login_success_and_failure(client, db_session):
    register_user(client, "login@ecofinds.io")

    ok = client.post("/auth/login", json={"email": "login@ecofinds.io", "password": DEFAULT_PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"

    bad = client.post("/auth/login", json={"email": "login@ecofinds.io", "password": "Wrong123"})
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Invalid credentials"

    user = db_session.query(User).filter(User.email == "login@ecofinds.io").first()
    assert user.last_login_at is not None
    actions = [(l.action, l.status) for l in db_session.query(Log).order_by(Log.id)]
    assert ("LOGIN", "SUCCESS") in actions
    assert ("LOGIN", "FAIL") in actions


def test_inactive_user_cannot_login(client, db_session):
    register_user(client, "gone@ecofinds.io")
    user = db_session.query(User).filter(User.email == "gone@ecofinds.io").first()
    user.is_active = False
    db_session.commit()

    res = client.post("/auth/login", json={"email": "gone@ecofinds.io", "password": DEFAULT_PASSWORD})
    assert res.status_code == 401


def test_protected_route_requires_bearer_token(client):
    assert client.get("/auth/me").status_code == 401

    res = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"


def test_logout_writes_audit_row(client, db_session):
    headers, user = register_user(client, "bye@ecofinds.io")
    res = client.post("/auth/logout", headers=headers)
    assert res.status_code == 200
    assert db_session.query(Log).filter(Log.action == "LOGOUT", Log.user_id == user["id"]).count() == 1


def test_forgot_password_answers_the_same_for_unknown_email(client):
    register_user(client, "known@ecofinds.io")
    known = client.post("/auth/forgot-password", json={"email": "known@ecofinds.io"})
    unknown = client.post("/auth/forgot-password", json={"email": "nobody@ecofinds.io"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_forgot_password_stores_only_token_hash(client, db_session):
    register_user(client, "hash@ecofinds.io")
    client.post("/auth/forgot-password", json={"email": "hash@ecofinds.io"})

    user = db_session.query(User).filter(User.email == "hash@ecofinds.io").first()
    assert user.reset_token_hash is not None
    assert len(user.reset_token_hash) == 64
    assert user.reset_token_expires_at > datetime.utcnow()


def test_reset_password_with_valid_token(client, db_session):
    register_user(client, "reset@ecofinds.io")
    user = db_session.query(User).filter(User.email == "reset@ecofinds.io").first()
    user.reset_token_hash = hashlib.sha256(b"known-token").hexdigest()
    user.reset_token_expires_at = datetime.utcnow() + timedelta(minutes=5)
    db_session.commit()

    res = client.post("/auth/reset-password", json={"token": "known-token", "password": "NewPass123"})
    assert res.status_code == 200

    login = client.post("/auth/login", json={"email": "reset@ecofinds.io", "password": "NewPass123"})
    assert login.status_code == 200

    # Token is single use
    again = client.post("/auth/reset-password", json={"token": "known-token", "password": "Other123"})
    assert again.status_code == 400


def test_reset_password_with_expired_token(client, db_session):
    register_user(client, "late@ecofinds.io")
    user = db_session.query(User).filter(User.email == "late@ecofinds.io").first()
    user.reset_token_hash = hashlib.sha256(b"old-token").hexdigest()
    user.reset_token_expires_at = datetime.utcnow() - timedelta(minutes=1)
    db_session.commit()

    res = client.post("/auth/reset-password", json={"token": "old-token", "password": "NewPass123"})
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid or expired reset token"
