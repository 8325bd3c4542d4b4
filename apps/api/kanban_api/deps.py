from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Collection

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.ai.providers import AIProvider, get_ai_provider
from kanban_api.config import Settings
from kanban_api.errors import AccessDenied, AuthenticationFailed, NotFound
from kanban_api.models import Board, User
from kanban_api.security import decode_access_token
from kanban_api.store import board_member_ids, get_board, get_user

BoardCheck = Callable[[str, Board, Collection[str]], bool]


def get_settings(request: Request) -> Settings:
  return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
  async with request.app.state.sessionmaker() as session:
    yield session


async def get_current_user(
  request: Request,
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
) -> User:
  auth = request.headers.get("authorization")
  if not auth or not auth.lower().startswith("bearer "):
    raise AuthenticationFailed("Not authenticated")
  token = auth.split(" ", 1)[1].strip()
  if not token:
    raise AuthenticationFailed("Invalid token")
  user_id = decode_access_token(token, secret=settings.jwt_secret)
  if not user_id:
    raise AuthenticationFailed("Invalid token")
  u = await get_user(db, user_id)
  if not u:
    raise AuthenticationFailed("User not found")
  return u


async def require_board_access(
  board_id: str,
  check: BoardCheck,
  user: User,
  db: AsyncSession,
  *,
  denied: str = "Access denied",
) -> tuple[Board, list[str]]:
  b = await get_board(db, board_id)
  if not b:
    raise NotFound("Board not found")
  member_ids = await board_member_ids(db, b.id)
  if not check(user.id, b, member_ids):
    raise AccessDenied(denied)
  return b, member_ids


def get_assistant(settings: Settings = Depends(get_settings)) -> AIProvider:
  return get_ai_provider(settings)
