from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.models import Board, BoardColumn, BoardMember, Card, User


async def board_member_ids(db: AsyncSession, board_id: str) -> list[str]:
  res = await db.execute(
    select(BoardMember.user_id).where(BoardMember.board_id == board_id).order_by(BoardMember.created_at.asc())
  )
  return list(res.scalars().all())


async def member_ids_by_board(db: AsyncSession, board_ids: Iterable[str]) -> dict[str, list[str]]:
  ids = list(board_ids)
  out: dict[str, list[str]] = {bid: [] for bid in ids}
  if not ids:
    return out
  res = await db.execute(
    select(BoardMember.board_id, BoardMember.user_id)
    .where(BoardMember.board_id.in_(ids))
    .order_by(BoardMember.created_at.asc())
  )
  for board_id, user_id in res.all():
    out[board_id].append(user_id)
  return out


async def users_by_id(db: AsyncSession, user_ids: Iterable[str]) -> dict[str, User]:
  ids = {uid for uid in user_ids if uid}
  if not ids:
    return {}
  res = await db.execute(select(User).where(User.id.in_(ids)))
  return {u.id: u for u in res.scalars().all()}


async def user_boards(db: AsyncSession, user_id: str) -> list[Board]:
  """Boards the user owns or has joined; public boards of others are excluded."""
  member_of = select(BoardMember.board_id).where(BoardMember.user_id == user_id)
  res = await db.execute(
    select(Board).where(or_(Board.owner_id == user_id, Board.id.in_(member_of))).order_by(Board.created_at.asc())
  )
  return list(res.scalars().all())


async def next_column_position(db: AsyncSession, board_id: str) -> int:
  res = await db.execute(select(func.max(BoardColumn.position)).where(BoardColumn.board_id == board_id))
  max_pos = res.scalar_one()
  return (max_pos + 1) if max_pos is not None else 0


async def next_card_position(db: AsyncSession, column_id: str) -> int:
  res = await db.execute(select(func.max(Card.position)).where(Card.column_id == column_id))
  max_pos = res.scalar_one()
  return (max_pos + 1) if max_pos is not None else 0


async def get_board(db: AsyncSession, board_id: str) -> Board | None:
  res = await db.execute(select(Board).where(Board.id == board_id))
  return res.scalar_one_or_none()


async def get_column(db: AsyncSession, column_id: str) -> BoardColumn | None:
  res = await db.execute(select(BoardColumn).where(BoardColumn.id == column_id))
  return res.scalar_one_or_none()


async def get_card(db: AsyncSession, card_id: str) -> Card | None:
  res = await db.execute(select(Card).where(Card.id == card_id))
  return res.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: str) -> User | None:
  res = await db.execute(select(User).where(User.id == user_id))
  return res.scalar_one_or_none()
