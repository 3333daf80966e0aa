from __future__ import annotations

from datetime import timedelta

import pytest

from finbook import models
from finbook.core.security import create_access_token, decode_access_token, hash_password, verify_password


def _signup(client, **overrides):
    body = {"email": "new@example.com", "password": "abc123!", "name": "Alice"}
    body.update(overrides)
    return client.post("/api/auth/signup", json=body)


def test_signup_then_login_and_use_token(client, db_session):
    resp = _signup(client)
    assert resp.status_code == 201
    token = resp.json()["access_token"]
    assert resp.json()["token_type"] == "bearer"

    user = db_session.query(models.User).filter_by(email="new@example.com").one()
    assert user.profile.name == "Alice"
    assert user.profile.plan is models.Plan.FREE
    assert user.password_hash != "abc123!"

    resp = client.post("/api/auth/login", json={"email": "NEW@example.com", "password": "abc123!"})
    assert resp.status_code == 200

    resp = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["email"] == "new@example.com"


@pytest.mark.parametrize(
    "password, message",
    [
        ("a1!", "Password must be between 6 and 20 characters."),
        ("123456!", "Password must include at least one letter."),
        ("abcdef!", "Password must include at least one number."),
        ("abc1234", "Password must include at least one special character."),
    ],
)
def test_signup_password_rules(client, password, message):
    resp = _signup(client, password=password)
    assert resp.status_code == 422
    assert message in resp.text


@pytest.mark.parametrize(
    "name, message",
    [("Al", "Name must be at least 3 characters."), ("R2D2", "Name cannot contain numbers.")],
)
def test_signup_name_rules(client, name, message):
    resp = _signup(client, name=name)
    assert resp.status_code == 422
    assert message in resp.text


def test_duplicate_email(client):
    assert _signup(client).status_code == 201
    assert _signup(client).status_code == 409


def test_bad_credentials(client):
    _signup(client)
    resp = client.post("/api/auth/login", json={"email": "new@example.com", "password": "wrong1!"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password."
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "abc123!"})
    assert resp.status_code == 401


def test_invalid_or_expired_token(client, demo_user):
    assert client.get("/api/profile", headers={"Authorization": "Bearer garbage"}).status_code == 401
    expired = create_access_token(demo_user.id, expires_delta=timedelta(minutes=-1))
    assert client.get("/api/profile", headers={"Authorization": f"Bearer {expired}"}).status_code == 401


def test_token_creates_missing_profile(client, db_session):
    user = models.User(email="bare@example.com", is_active=True)
    db_session.add(user)
    db_session.commit()
    token = create_access_token(user.id)
    resp = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "bare"


def test_password_helpers():
    hashed = hash_password("abc123!")
    assert verify_password("abc123!", hashed)
    assert not verify_password("abc123?", hashed)
    assert not verify_password("abc123!", None)
    assert not verify_password("abc123!", "not-a-bcrypt-hash")
    assert decode_access_token(create_access_token(42)) == 42
