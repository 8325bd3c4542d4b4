"""Response builders that resolve stored ids into nested objects.

References are populated with batched queries: one per entity kind per call,
regardless of how many boards/columns/cards are being rendered.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.models import Board, BoardColumn, Card, User
from kanban_api.schemas import (
  Attachment,
  BoardDetailOut,
  BoardOut,
  CardOut,
  ChecklistItem,
  ColumnOut,
  CommentOut,
  Label,
  UserOut,
  UserRef,
)
from kanban_api.store import member_ids_by_board, users_by_id


def user_ref(u: User) -> UserRef:
  return UserRef(id=u.id, username=u.username, email=u.email)


def user_out(u: User) -> UserOut:
  return UserOut(id=u.id, username=u.username, email=u.email, createdAt=u.created_at)


def _card_user_ids(cards: Sequence[Card]) -> set[str]:
  ids: set[str] = set()
  for c in cards:
    ids.update(c.assigned_to or [])
    ids.update(str(cm.get("user")) for cm in (c.comments or []) if cm.get("user"))
  return ids


def _comment_out(cm: dict[str, Any], users: dict[str, User]) -> CommentOut:
  author = users.get(str(cm.get("user") or ""))
  return CommentOut(
    user=user_ref(author) if author else None,
    text=str(cm.get("text") or ""),
    createdAt=cm.get("createdAt"),
  )


def _card_out(c: Card, users: dict[str, User]) -> CardOut:
  return CardOut(
    id=c.id,
    title=c.title,
    description=c.description or "",
    column=c.column_id,
    board=c.board_id,
    assignedTo=[user_ref(users[uid]) for uid in (c.assigned_to or []) if uid in users],
    position=c.position,
    priority=c.priority,
    dueDate=c.due_date,
    labels=[Label.model_validate(x) for x in (c.labels or [])],
    checklist=[ChecklistItem.model_validate(x) for x in (c.checklist or [])],
    attachments=[Attachment.model_validate(x) for x in (c.attachments or [])],
    comments=[_comment_out(cm, users) for cm in (c.comments or [])],
    isCompleted=bool(c.is_completed),
    createdAt=c.created_at,
    updatedAt=c.updated_at,
  )


async def cards_out(db: AsyncSession, cards: Sequence[Card]) -> list[CardOut]:
  users = await users_by_id(db, _card_user_ids(cards))
  return [_card_out(c, users) for c in cards]


async def card_out(db: AsyncSession, card: Card) -> CardOut:
  return (await cards_out(db, [card]))[0]


async def _cards_by_id(db: AsyncSession, columns: Sequence[BoardColumn]) -> dict[str, Card]:
  ids = {cid for col in columns for cid in (col.card_ids or [])}
  if not ids:
    return {}
  res = await db.execute(select(Card).where(Card.id.in_(ids)))
  return {c.id: c for c in res.scalars().all()}


def _column_out(col: BoardColumn, cards: dict[str, Card], users: dict[str, User]) -> ColumnOut:
  return ColumnOut(
    id=col.id,
    title=col.title,
    board=col.board_id,
    position=col.position,
    cards=[_card_out(cards[cid], users) for cid in (col.card_ids or []) if cid in cards],
    color=col.color,
    limit=col.wip_limit,
    createdAt=col.created_at,
    updatedAt=col.updated_at,
  )


async def columns_out(db: AsyncSession, columns: Sequence[BoardColumn]) -> list[ColumnOut]:
  cards = await _cards_by_id(db, columns)
  users = await users_by_id(db, _card_user_ids(list(cards.values())))
  return [_column_out(col, cards, users) for col in columns]


async def column_out(db: AsyncSession, column: BoardColumn) -> ColumnOut:
  return (await columns_out(db, [column]))[0]


def _board_fields(b: Board, users: dict[str, User], member_ids: list[str]) -> dict[str, Any]:
  return {
    "id": b.id,
    "title": b.title,
    "description": b.description or "",
    "owner": user_ref(users[b.owner_id]),
    "members": [user_ref(users[uid]) for uid in member_ids if uid in users],
    "backgroundColor": b.background_color,
    "isPublic": bool(b.is_public),
    "notes": b.notes or "",
    "createdAt": b.created_at,
    "updatedAt": b.updated_at,
  }


async def boards_out(db: AsyncSession, boards: Sequence[Board]) -> list[BoardOut]:
  members = await member_ids_by_board(db, [b.id for b in boards])
  users = await users_by_id(db, {b.owner_id for b in boards} | {uid for ids in members.values() for uid in ids})
  return [BoardOut(**_board_fields(b, users, members[b.id]), columns=list(b.column_ids or [])) for b in boards]


async def board_out(db: AsyncSession, board: Board) -> BoardOut:
  return (await boards_out(db, [board]))[0]


async def board_details_out(db: AsyncSession, boards: Sequence[Board]) -> list[BoardDetailOut]:
  if not boards:
    return []
  members = await member_ids_by_board(db, [b.id for b in boards])
  cres = await db.execute(select(BoardColumn).where(BoardColumn.board_id.in_([b.id for b in boards])))
  columns = {col.id: col for col in cres.scalars().all()}
  cards = await _cards_by_id(db, list(columns.values()))

  user_ids = {b.owner_id for b in boards} | {uid for ids in members.values() for uid in ids}
  user_ids |= _card_user_ids(list(cards.values()))
  users = await users_by_id(db, user_ids)

  out: list[BoardDetailOut] = []
  for b in boards:
    # column_ids defines display order; stale ids are skipped.
    cols = [_column_out(columns[cid], cards, users) for cid in (b.column_ids or []) if cid in columns]
    out.append(BoardDetailOut(**_board_fields(b, users, members[b.id]), columns=cols))
  return out


async def board_detail_out(db: AsyncSession, board: Board) -> BoardDetailOut:
  return (await board_details_out(db, [board]))[0]
