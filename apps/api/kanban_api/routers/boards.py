from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api import access
from kanban_api.audit import write_audit
from kanban_api.deps import get_current_user, get_db, require_board_access
from kanban_api.errors import ValidationError
from kanban_api.models import Board, BoardColumn, BoardMember, Card, User
from kanban_api.schemas import (
  BoardCreateIn,
  BoardDetailOut,
  BoardOut,
  BoardUpdateIn,
  MemberIn,
  MessageOut,
  NotesIn,
  NotesOut,
)
from kanban_api.store import get_user, user_boards, users_by_id
from kanban_api.validation import require_title
from kanban_api.views import board_detail_out, board_out, boards_out

router = APIRouter(prefix="/api/boards", tags=["boards"])

DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")


async def _delete_board_everything(db: AsyncSession, *, board_id: str) -> None:
  # Children first: cards, then columns, then memberships, then the board itself.
  await db.execute(delete(Card).where(Card.board_id == board_id))
  await db.execute(delete(BoardColumn).where(BoardColumn.board_id == board_id))
  await db.execute(delete(BoardMember).where(BoardMember.board_id == board_id))
  await db.execute(delete(Board).where(Board.id == board_id))


@router.get("", response_model=list[BoardOut])
async def list_boards(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[BoardOut]:
  return await boards_out(db, await user_boards(db, user.id))


@router.post("", response_model=BoardDetailOut, status_code=status.HTTP_201_CREATED)
async def create_board(payload: BoardCreateIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> BoardDetailOut:
  title = require_title(payload.title)

  member_ids: list[str] = []
  for uid in payload.members:
    if uid == user.id:
      raise ValidationError("Board owner cannot be added as a member")
    if uid not in member_ids:
      member_ids.append(uid)
  found = await users_by_id(db, member_ids)
  if len(found) != len(member_ids):
    raise ValidationError("User not found")

  b = Board(
    title=title,
    description=payload.description or "",
    owner_id=user.id,
    background_color=payload.backgroundColor,
    is_public=payload.isPublic,
    notes=payload.notes or "",
    column_ids=[],
  )
  db.add(b)
  await db.flush()

  for uid in member_ids:
    db.add(BoardMember(board_id=b.id, user_id=uid))

  cols = [BoardColumn(board_id=b.id, title=name, position=i, card_ids=[]) for i, name in enumerate(DEFAULT_COLUMNS)]
  db.add_all(cols)
  await db.flush()
  b.column_ids = [c.id for c in cols]
  await db.flush()

  write_audit(
    event_type="board.created",
    entity_type="Board",
    entity_id=b.id,
    board_id=b.id,
    actor_id=user.id,
    payload={"title": b.title, "isPublic": b.is_public, "members": member_ids},
  )
  await db.commit()
  return await board_detail_out(db, b)


@router.get("/{board_id}", response_model=BoardDetailOut)
async def get_board(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> BoardDetailOut:
  b, _ = await require_board_access(board_id, access.can_read, user, db)
  return await board_detail_out(db, b)


@router.put("/{board_id}", response_model=BoardOut)
async def update_board(
  board_id: str,
  payload: BoardUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> BoardOut:
  b, _ = await require_board_access(
    board_id, access.can_update_board_meta, user, db, denied="Only board owner can update board"
  )
  if payload.title is not None:
    b.title = require_title(payload.title)
  if payload.description is not None:
    b.description = payload.description
  if payload.backgroundColor is not None:
    b.background_color = payload.backgroundColor
  if payload.isPublic is not None:
    b.is_public = payload.isPublic
  if payload.notes is not None:
    b.notes = payload.notes
  await db.flush()

  write_audit(
    event_type="board.updated",
    entity_type="Board",
    entity_id=b.id,
    board_id=b.id,
    actor_id=user.id,
    payload=payload.model_dump(exclude_unset=True),
  )
  await db.commit()
  return await board_out(db, b)


@router.delete("/{board_id}", response_model=MessageOut)
async def delete_board(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> MessageOut:
  b, _ = await require_board_access(board_id, access.can_delete_board, user, db, denied="Only board owner can delete board")
  title = b.title
  await _delete_board_everything(db, board_id=board_id)
  write_audit(event_type="board.deleted", entity_type="Board", entity_id=board_id, board_id=board_id, actor_id=user.id, payload={"title": title})
  await db.commit()
  return MessageOut(message="Board deleted successfully")


@router.post("/{board_id}/members", response_model=BoardOut)
async def add_member(
  board_id: str,
  payload: MemberIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> BoardOut:
  b, member_ids = await require_board_access(
    board_id, access.can_manage_members, user, db, denied="Only board owner can add members"
  )
  if not await get_user(db, payload.userId):
    raise ValidationError("User not found")
  if payload.userId == b.owner_id:
    raise ValidationError("Board owner cannot be added as a member")
  if payload.userId in member_ids:
    raise ValidationError("User is already a member of this board")

  db.add(BoardMember(board_id=b.id, user_id=payload.userId))
  await db.flush()
  write_audit(event_type="board.member_added", entity_type="Board", entity_id=b.id, board_id=b.id, actor_id=user.id, payload={"userId": payload.userId})
  await db.commit()
  return await board_out(db, b)


@router.delete("/{board_id}/members", response_model=BoardOut)
async def remove_member(
  board_id: str,
  payload: MemberIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> BoardOut:
  b, member_ids = await require_board_access(
    board_id, access.can_manage_members, user, db, denied="Only board owner can remove members"
  )
  if payload.userId in member_ids:
    await db.execute(delete(BoardMember).where(BoardMember.board_id == b.id, BoardMember.user_id == payload.userId))
    write_audit(event_type="board.member_removed", entity_type="Board", entity_id=b.id, board_id=b.id, actor_id=user.id, payload={"userId": payload.userId})
    await db.commit()
  return await board_out(db, b)


@router.get("/{board_id}/notes", response_model=NotesOut)
async def get_notes(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> NotesOut:
  b, _ = await require_board_access(board_id, access.can_read, user, db)
  return NotesOut(notes=b.notes or "")


@router.put("/{board_id}/notes", response_model=NotesOut)
async def update_notes(
  board_id: str,
  payload: NotesIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> NotesOut:
  b, _ = await require_board_access(
    board_id, access.can_update_notes, user, db, denied="Only board owner or members can update notes"
  )
  b.notes = payload.notes
  write_audit(event_type="board.notes_updated", entity_type="Board", entity_id=b.id, board_id=b.id, actor_id=user.id)
  await db.commit()
  return NotesOut(notes=b.notes)
