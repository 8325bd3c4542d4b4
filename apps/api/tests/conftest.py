from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

from kanban_api.config import Settings
from kanban_api.db import init_db
from kanban_api.main import create_app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
  return Settings(
    _env_file=None,
    database_url=f"sqlite+aiosqlite:///{tmp_path / 'kanban_test.db'}",
    jwt_secret="test-secret",
    ai_provider="local",
    openrouter_api_key=None,
  )


@pytest.fixture
async def app(settings: Settings) -> FastAPI:
  # ASGITransport does not run lifespan events, so create tables here.
  a = create_app(settings)
  await init_db(a.state.engine)
  yield a
  await a.state.engine.dispose()


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


def auth(token: str) -> dict[str, str]:
  return {"Authorization": f"Bearer {token}"}


async def register(
  client: AsyncClient,
  username: str,
  *,
  email: str | None = None,
  password: str = "secret123",
) -> dict:
  res = await client.post(
    "/api/auth/register",
    json={"username": username, "email": email or f"{username}@example.com", "password": password},
  )
  assert res.status_code == 201, res.text
  body = res.json()
  return {"id": body["user"]["id"], "token": body["token"], "headers": auth(body["token"]), "user": body["user"]}


async def create_board(client: AsyncClient, headers: dict[str, str], title: str = "Sprint 1", **extra) -> dict:
  res = await client.post("/api/boards", json={"title": title, **extra}, headers=headers)
  assert res.status_code == 201, res.text
  return res.json()


async def create_card(client: AsyncClient, headers: dict[str, str], column_id: str, title: str, **extra) -> dict:
  res = await client.post(f"/api/cards/column/{column_id}", json={"title": title, **extra}, headers=headers)
  assert res.status_code == 201, res.text
  return res.json()
