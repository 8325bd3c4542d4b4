from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from kanban_api.config import Settings
from kanban_api.models import Base


def create_engine(settings: Settings) -> AsyncEngine:
  kwargs: dict = {"pool_pre_ping": True}
  if settings.database_url.startswith("sqlite"):
    kwargs = {"connect_args": {"check_same_thread": False}}
  return create_async_engine(settings.database_url, **kwargs)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
  return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.create_all)
