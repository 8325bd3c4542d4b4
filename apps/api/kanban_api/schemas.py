from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["low", "medium", "high", "urgent"]
ChatRole = Literal["system", "user", "assistant"]

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_dt_utc(value: object) -> object:
  if value is None:
    return None
  if isinstance(value, datetime):
    dt = value
  elif isinstance(value, str):
    s = value.strip()
    if not s:
      return None
    if _DATE_ONLY_RE.fullmatch(s):
      dt = datetime.fromisoformat(s)
    else:
      dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
  else:
    return value

  if dt.tzinfo is None:
    return dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


class MessageOut(BaseModel):
  message: str


# --- users / auth ---


class UserRef(BaseModel):
  id: str
  username: str
  email: str


class UserOut(UserRef):
  createdAt: datetime | None = None


class RegisterIn(BaseModel):
  username: str = ""
  email: str = ""
  password: str = ""


class LoginIn(BaseModel):
  email: str = ""
  password: str = ""


class AuthOut(BaseModel):
  user: UserOut
  token: str


class ProfileUpdateIn(BaseModel):
  model_config = ConfigDict(extra="forbid")

  username: str | None = None


class PasswordChangeIn(BaseModel):
  currentPassword: str | None = None
  newPassword: str | None = None


# --- cards ---


class Label(BaseModel):
  name: str = ""
  color: str = ""


class ChecklistItem(BaseModel):
  text: str = ""
  completed: bool = False


class Attachment(BaseModel):
  name: str = ""
  url: str = ""
  uploadedAt: datetime | None = None

  @field_validator("uploadedAt", mode="before")
  @classmethod
  def _uploaded_at(cls, v: object) -> object:
    return _parse_dt_utc(v)


class CommentOut(BaseModel):
  user: UserRef | None = None
  text: str
  createdAt: datetime | None = None


class CardCreateIn(BaseModel):
  title: str
  description: str = ""
  priority: Priority = "medium"
  dueDate: datetime | None = None
  assignedTo: list[str] = Field(default_factory=list)
  labels: list[Label] = Field(default_factory=list)

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_date(cls, v: object) -> object:
    return _parse_dt_utc(v)


class CardUpdateIn(BaseModel):
  # column, board, position and comments are changed only through their own operations.
  model_config = ConfigDict(extra="forbid")

  title: str | None = None
  description: str | None = None
  priority: Priority | None = None
  dueDate: datetime | None = None
  assignedTo: list[str] | None = None
  labels: list[Label] | None = None
  checklist: list[ChecklistItem] | None = None
  attachments: list[Attachment] | None = None
  isCompleted: bool | None = None

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_date(cls, v: object) -> object:
    return _parse_dt_utc(v)


class CardMoveIn(BaseModel):
  newColumnId: str
  newPosition: int | None = None


class CommentCreateIn(BaseModel):
  text: str = ""


class ChecklistToggleIn(BaseModel):
  completed: bool


class CardOut(BaseModel):
  id: str
  title: str
  description: str
  column: str
  board: str
  assignedTo: list[UserRef]
  position: int
  priority: Priority
  dueDate: datetime | None
  labels: list[Label]
  checklist: list[ChecklistItem]
  attachments: list[Attachment]
  comments: list[CommentOut]
  isCompleted: bool
  createdAt: datetime
  updatedAt: datetime


# --- columns ---


class ColumnCreateIn(BaseModel):
  title: str
  color: str = "#f1f2f6"
  limit: int | None = None


class ColumnUpdateIn(BaseModel):
  model_config = ConfigDict(extra="forbid")

  title: str | None = None
  color: str | None = None
  limit: int | None = None
  position: int | None = None


class ColumnOrderIn(BaseModel):
  id: str
  position: int


class ColumnReorderIn(BaseModel):
  columnOrders: list[ColumnOrderIn] = Field(default_factory=list)


class ColumnOut(BaseModel):
  id: str
  title: str
  board: str
  position: int
  cards: list[CardOut]
  color: str
  limit: int | None
  createdAt: datetime
  updatedAt: datetime


# --- boards ---


class BoardCreateIn(BaseModel):
  title: str
  description: str = ""
  backgroundColor: str = "#ffffff"
  isPublic: bool = False
  notes: str = ""
  members: list[str] = Field(default_factory=list)


class BoardUpdateIn(BaseModel):
  # owner, members and columns have dedicated operations.
  model_config = ConfigDict(extra="forbid")

  title: str | None = None
  description: str | None = None
  backgroundColor: str | None = None
  isPublic: bool | None = None
  notes: str | None = None


class MemberIn(BaseModel):
  userId: str


class NotesIn(BaseModel):
  notes: str = ""


class NotesOut(BaseModel):
  notes: str


class _BoardBase(BaseModel):
  id: str
  title: str
  description: str
  owner: UserRef
  members: list[UserRef]
  backgroundColor: str
  isPublic: bool
  notes: str
  createdAt: datetime
  updatedAt: datetime


class BoardOut(_BoardBase):
  columns: list[str]


class BoardDetailOut(_BoardBase):
  columns: list[ColumnOut]


# --- chatbot ---


class ChatMessageIn(BaseModel):
  role: ChatRole
  content: str


class ChatIn(BaseModel):
  messages: list[ChatMessageIn] | None = None


class ChatOut(BaseModel):
  response: str


class ChatContextOut(BaseModel):
  boards: list[BoardDetailOut]
  context: str
  totalBoards: int
  totalCards: int
