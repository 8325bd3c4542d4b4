from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
  if value is None:
    return None
  if value.tzinfo is None:
    return value.replace(tzinfo=timezone.utc)
  return value.astimezone(timezone.utc)


class UtcDateTime(TypeDecorator):
  """Timezone-aware timestamp that always reads back in UTC.

  sqlite drops the offset on storage, so naive values coming back are UTC.
  """

  impl = DateTime
  cache_ok = True

  def __init__(self) -> None:
    super().__init__(timezone=True)

  def process_bind_param(self, value, dialect):
    return as_utc(value)

  def process_result_value(self, value, dialect):
    return as_utc(value)


def new_id() -> str:
  return str(uuid.uuid4())


# JSONB on postgres, plain JSON elsewhere (sqlite in tests).
JsonDoc = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
  pass


class User(Base):
  __tablename__ = "users"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
  username: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  email: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  password_hash: Mapped[str] = mapped_column(String, nullable=False)
  created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, onupdate=utcnow, nullable=False)


class Board(Base):
  __tablename__ = "boards"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
  title: Mapped[str] = mapped_column(String, nullable=False)
  description: Mapped[str] = mapped_column(Text, nullable=False, default="")
  owner_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
  # Ordered column ids; always reassign a new list so the change is flushed.
  column_ids: Mapped[list[str]] = mapped_column(JsonDoc, nullable=False, default=list)
  background_color: Mapped[str] = mapped_column(String, nullable=False, default="#ffffff")
  is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
  created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, onupdate=utcnow, nullable=False)


class BoardMember(Base):
  __tablename__ = "board_members"
  __table_args__ = (UniqueConstraint("board_id", "user_id", name="uq_board_member"),)

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
  board_id: Mapped[str] = mapped_column(String(36), ForeignKey("boards.id"), nullable=False, index=True)
  user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
  created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, nullable=False)


class BoardColumn(Base):
  __tablename__ = "columns"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
  board_id: Mapped[str] = mapped_column(String(36), ForeignKey("boards.id"), nullable=False, index=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  card_ids: Mapped[list[str]] = mapped_column(JsonDoc, nullable=False, default=list)
  color: Mapped[str] = mapped_column(String, nullable=False, default="#f1f2f6")
  # Stored and returned, never enforced.
  wip_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
  created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, onupdate=utcnow, nullable=False)


class Card(Base):
  __tablename__ = "cards"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
  title: Mapped[str] = mapped_column(String, nullable=False)
  description: Mapped[str] = mapped_column(Text, nullable=False, default="")
  column_id: Mapped[str] = mapped_column(String(36), ForeignKey("columns.id"), nullable=False, index=True)
  board_id: Mapped[str] = mapped_column(String(36), ForeignKey("boards.id"), nullable=False, index=True)
  assigned_to: Mapped[list[str]] = mapped_column(JsonDoc, nullable=False, default=list)
  position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  priority: Mapped[str] = mapped_column(String, nullable=False, default="medium")
  due_date: Mapped[datetime | None] = mapped_column(UtcDateTime(), nullable=True)
  labels: Mapped[list[dict[str, Any]]] = mapped_column(JsonDoc, nullable=False, default=list)
  checklist: Mapped[list[dict[str, Any]]] = mapped_column(JsonDoc, nullable=False, default=list)
  attachments: Mapped[list[dict[str, Any]]] = mapped_column(JsonDoc, nullable=False, default=list)
  comments: Mapped[list[dict[str, Any]]] = mapped_column(JsonDoc, nullable=False, default=list)
  is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utcnow, onupdate=utcnow, nullable=False)
