from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import auth, register
from kanban_api.security import create_access_token, decode_access_token


@pytest.mark.anyio
async def test_register_and_login(client: AsyncClient) -> None:
  alice = await register(client, "alice", email="Alice@Example.com")
  assert alice["user"]["email"] == "alice@example.com"
  assert "password" not in alice["user"] and "password_hash" not in alice["user"]

  res = await client.post("/api/auth/login", json={"email": "ALICE@example.com", "password": "secret123"})
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["user"]["id"] == alice["id"]

  me = await client.get("/api/users/profile", headers=auth(body["token"]))
  assert me.status_code == 200, me.text
  assert me.json()["username"] == "alice"


@pytest.mark.anyio
async def test_login_rejects_bad_credentials(client: AsyncClient) -> None:
  await register(client, "alice")
  res = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
  assert res.status_code == 401
  assert res.json()["detail"] == "Invalid credentials"

  res = await client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret123"})
  assert res.status_code == 401
  assert res.json()["detail"] == "Invalid credentials"


@pytest.mark.anyio
async def test_register_validation(client: AsyncClient) -> None:
  await register(client, "alice")

  cases = [
    ({"username": "al", "email": "x@example.com", "password": "secret123"}, "Username must be at least 3 characters long"),
    ({"username": "bobby", "email": "not-an-email", "password": "secret123"}, "Invalid email"),
    ({"username": "bobby", "email": "bob@example.com", "password": "123"}, "Password must be at least 6 characters long"),
    ({"username": "bobby", "email": "alice@example.com", "password": "secret123"}, "Email already exists"),
    ({"username": "ALICE", "email": "bob@example.com", "password": "secret123"}, "Username already taken"),
  ]
  for payload, message in cases:
    res = await client.post("/api/auth/register", json=payload)
    assert res.status_code == 400, res.text
    assert res.json()["detail"] == message


@pytest.mark.anyio
async def test_token_for_deleted_or_unknown_user_is_rejected(client: AsyncClient) -> None:
  token = create_access_token("no-such-user", secret="test-secret", expires_days=7)
  res = await client.get("/api/users/profile", headers=auth(token))
  assert res.status_code == 401
  assert res.json()["detail"] == "User not found"

  forged = create_access_token("no-such-user", secret="other-secret", expires_days=7)
  res = await client.get("/api/users/profile", headers=auth(forged))
  assert res.status_code == 401
  assert res.json()["detail"] == "Invalid token"


def test_access_token_round_trip_and_expiry() -> None:
  token = create_access_token("user-1", secret="s3cret", expires_days=7)
  assert decode_access_token(token, secret="s3cret") == "user-1"
  assert decode_access_token(token, secret="other") is None

  expired = create_access_token("user-1", secret="s3cret", expires_days=-1)
  assert decode_access_token(expired, secret="s3cret") is None
