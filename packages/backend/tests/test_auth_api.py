"""Auth API tests — registration, login and the bearer-token gate.

Learn: Tests cover:
1. Registration: sanitized response, normalization, duplicates, validation
2. Login: token issued, identical failure for unknown email / wrong password
3. The request gate: missing, expired, tampered and foreign-secret tokens
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from taskmaster.auth.jwt import create_access_token
from taskmaster.config import settings


def _unique(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8]}"


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    """Register returns 201 with a sanitized user."""
    name = _unique("reg")
    r = await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": "secret1"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "User registered successfully!"
    user = body["user"]
    assert user["username"] == name
    assert user["email"] == f"{name}@example.com"
    assert user["role"] == "user"
    assert user["avatarUrl"]
    assert "_id" in user and "createdAt" in user and "updatedAt" in user
    assert "password" not in user
    assert "passwordHash" not in user
    assert "password_hash" not in user


@pytest.mark.asyncio
async def test_register_normalizes_username_and_email(client):
    r = await client.post(
        "/api/auth/register",
        json={"username": "  MixedCase  ", "email": " Mixed@Example.COM ", "password": "secret1"},
    )
    assert r.status_code == 201
    user = r.json()["user"]
    assert user["username"] == "mixedcase"
    assert user["email"] == "mixed@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    """Same email with a different username is rejected."""
    email = f"{_unique('dup')}@example.com"
    r1 = await client.post(
        "/api/auth/register",
        json={"username": _unique("a"), "email": email, "password": "secret1"},
    )
    assert r1.status_code == 201

    r2 = await client.post(
        "/api/auth/register",
        json={"username": _unique("b"), "email": email.upper(), "password": "secret1"},
    )
    assert r2.status_code == 400
    assert r2.json()["detail"] == "User with this email already exists."


@pytest.mark.asyncio
async def test_register_duplicate_username(client):
    name = _unique("same")
    r1 = await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}1@example.com", "password": "secret1"},
    )
    assert r1.status_code == 201

    r2 = await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}2@example.com", "password": "secret1"},
    )
    assert r2.status_code == 400
    assert r2.json()["detail"] == "User with this username already exists."


@pytest.mark.asyncio
async def test_register_short_password(client):
    """Password must be at least 6 characters."""
    r = await client.post(
        "/api/auth/register",
        json={"username": _unique("short"), "email": f"{_unique('s')}@example.com", "password": "abc"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Validation Error"


@pytest.mark.asyncio
async def test_register_short_username(client):
    r = await client.post(
        "/api/auth/register",
        json={"username": " ab ", "email": f"{_unique('u')}@example.com", "password": "secret1"},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_register_invalid_email(client):
    r = await client.post(
        "/api/auth/register",
        json={"username": _unique("mail"), "email": "not-an-email", "password": "secret1"},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_register_missing_fields(client):
    r = await client.post("/api/auth/register", json={"username": _unique("x")})
    assert r.status_code == 400
    errors = r.json()["errors"]
    assert any("email" in e for e in errors)
    assert any("password" in e for e in errors)


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client):
    """Login with valid credentials returns a token and the profile."""
    name = _unique("login")
    await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": "secret1"},
    )

    r = await client.post(
        "/api/auth/login",
        json={"email": f"{name}@example.com", "password": "secret1"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Login successful!"
    assert body["user"]["username"] == name
    assert "passwordHash" not in body["user"]

    claims = pyjwt.decode(body["token"], settings.jwt_secret, algorithms=["HS256"])
    assert claims["sub"] == body["user"]["_id"]
    assert claims["username"] == name
    assert claims["role"] == "user"
    assert claims["exp"] - claims["iat"] == 24 * 3600


@pytest.mark.asyncio
async def test_login_email_is_case_insensitive(client):
    name = _unique("case")
    await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": "secret1"},
    )
    r = await client.post(
        "/api/auth/login",
        json={"email": f"  {name.upper()}@EXAMPLE.com", "password": "secret1"},
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client):
    """Wrong password and unknown email give the same status and message."""
    name = _unique("enum")
    await client.post(
        "/api/auth/register",
        json={"username": name, "email": f"{name}@example.com", "password": "secret1"},
    )

    wrong_pw = await client.post(
        "/api/auth/login",
        json={"email": f"{name}@example.com", "password": "wrong-password"},
    )
    no_user = await client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "secret1"},
    )
    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.json() == no_user.json() == {
        "detail": "Invalid credentials.",
        "message": "Invalid credentials.",
    }


@pytest.mark.asyncio
async def test_login_missing_fields(client):
    r = await client.post("/api/auth/login", json={"email": "someone@example.com"})
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Request gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_protected_route_without_token(client):
    r = await client.get("/api/tasks")
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication token required"


@pytest.mark.asyncio
async def test_protected_route_with_non_bearer_header(client):
    r = await client.get("/api/tasks", headers={"Authorization": "Basic abc123"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_with_garbage_token(client):
    r = await client.get("/api/tasks", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Invalid token"


@pytest.mark.asyncio
async def test_expired_token_is_401(client, signup):
    _, user = await signup()
    token = create_access_token(
        user["_id"],
        user["username"],
        user["role"],
        now=datetime.now(timezone.utc) - timedelta(hours=25),
    )
    r = await client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"


@pytest.mark.asyncio
async def test_token_near_end_of_lifetime_still_works(client, signup):
    _, user = await signup()
    token = create_access_token(
        user["_id"],
        user["username"],
        user["role"],
        now=datetime.now(timezone.utc) - timedelta(hours=23, minutes=55),
    )
    r = await client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_is_403(client, signup):
    _, user = await signup()
    now = datetime.now(timezone.utc)
    forged = pyjwt.encode(
        {
            "sub": user["_id"],
            "username": user["username"],
            "role": "admin",
            "type": "access",
            "iat": now,
            "exp": now + timedelta(hours=1),
        },
        "some-other-secret",
        algorithm="HS256",
    )
    r = await client.get("/api/tasks", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_token_with_non_uuid_subject_is_403(client):
    token = create_access_token("not-a-uuid", "ghost", "user")
    r = await client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Invalid token payload"


@pytest.mark.asyncio
async def test_auth_responses_are_not_cached(client):
    r = await client.post("/api/auth/login", json={"email": "x@example.com", "password": "whatever"})
    assert r.headers["Cache-Control"] == "no-store"
