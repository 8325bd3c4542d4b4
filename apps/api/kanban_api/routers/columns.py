from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api import access
from kanban_api.audit import write_audit
from kanban_api.deps import get_current_user, get_db, require_board_access
from kanban_api.errors import NotFound
from kanban_api.models import BoardColumn, Card, User
from kanban_api.schemas import ColumnCreateIn, ColumnOut, ColumnReorderIn, ColumnUpdateIn, MessageOut
from kanban_api.store import get_column, next_column_position
from kanban_api.validation import require_title
from kanban_api.views import column_out, columns_out

router = APIRouter(prefix="/api/columns", tags=["columns"])


async def _board_columns(db: AsyncSession, board_id: str) -> list[BoardColumn]:
  res = await db.execute(
    select(BoardColumn)
    .where(BoardColumn.board_id == board_id)
    .order_by(BoardColumn.position.asc(), BoardColumn.created_at.asc())
  )
  return list(res.scalars().all())


async def _load_column(db: AsyncSession, column_id: str) -> BoardColumn:
  col = await get_column(db, column_id)
  if not col:
    raise NotFound("Column not found")
  return col


@router.get("/board/{board_id}", response_model=list[ColumnOut])
async def list_columns(board_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[ColumnOut]:
  await require_board_access(board_id, access.can_read, user, db)
  return await columns_out(db, await _board_columns(db, board_id))


@router.post("/board/{board_id}", response_model=ColumnOut, status_code=status.HTTP_201_CREATED)
async def create_column(
  board_id: str,
  payload: ColumnCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ColumnOut:
  b, _ = await require_board_access(board_id, access.can_write, user, db)
  title = require_title(payload.title)

  col = BoardColumn(
    board_id=b.id,
    title=title,
    position=await next_column_position(db, b.id),
    color=payload.color,
    wip_limit=payload.limit,
    card_ids=[],
  )
  db.add(col)
  await db.flush()
  b.column_ids = [*(b.column_ids or []), col.id]
  await db.flush()

  write_audit(
    event_type="column.created",
    entity_type="Column",
    entity_id=col.id,
    board_id=b.id,
    actor_id=user.id,
    payload={"title": col.title, "position": col.position},
  )
  await db.commit()
  return await column_out(db, col)


@router.put("/board/{board_id}/reorder", response_model=list[ColumnOut])
async def reorder_columns(
  board_id: str,
  payload: ColumnReorderIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[ColumnOut]:
  b, _ = await require_board_access(board_id, access.can_write, user, db)
  cols = {c.id: c for c in await _board_columns(db, b.id)}
  # Best effort: unknown ids and columns of other boards are skipped, positions are not validated.
  applied = []
  for item in payload.columnOrders:
    col = cols.get(item.id)
    if col is None:
      continue
    col.position = item.position
    applied.append({"id": item.id, "position": item.position})
  await db.flush()

  write_audit(event_type="column.reordered", entity_type="Board", entity_id=b.id, board_id=b.id, actor_id=user.id, payload={"columnOrders": applied})
  await db.commit()
  return await columns_out(db, await _board_columns(db, b.id))


@router.put("/{column_id}", response_model=ColumnOut)
async def update_column(
  column_id: str,
  payload: ColumnUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ColumnOut:
  col = await _load_column(db, column_id)
  await require_board_access(col.board_id, access.can_write, user, db)

  if payload.title is not None:
    col.title = require_title(payload.title)
  if payload.color is not None:
    col.color = payload.color
  if "limit" in payload.model_fields_set:
    col.wip_limit = payload.limit
  if payload.position is not None:
    col.position = payload.position
  await db.flush()

  write_audit(
    event_type="column.updated",
    entity_type="Column",
    entity_id=col.id,
    board_id=col.board_id,
    actor_id=user.id,
    payload=payload.model_dump(exclude_unset=True),
  )
  await db.commit()
  return await column_out(db, col)


@router.delete("/{column_id}", response_model=MessageOut)
async def delete_column(column_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> MessageOut:
  col = await _load_column(db, column_id)
  b, _ = await require_board_access(col.board_id, access.can_write, user, db)
  title = col.title

  await db.execute(delete(Card).where(Card.column_id == column_id))
  b.column_ids = [cid for cid in (b.column_ids or []) if cid != column_id]
  await db.flush()
  await db.execute(delete(BoardColumn).where(BoardColumn.id == column_id))

  write_audit(event_type="column.deleted", entity_type="Column", entity_id=column_id, board_id=b.id, actor_id=user.id, payload={"title": title})
  await db.commit()
  return MessageOut(message="Column deleted successfully")
