from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api import access
from kanban_api.audit import write_audit
from kanban_api.deps import get_current_user, get_db, require_board_access
from kanban_api.errors import NotFound, ValidationError
from kanban_api.models import Card, User, utcnow
from kanban_api.schemas import (
  CardCreateIn,
  CardMoveIn,
  CardOut,
  CardUpdateIn,
  ChecklistToggleIn,
  CommentCreateIn,
  MessageOut,
)
from kanban_api.store import get_card, get_column, next_card_position, users_by_id
from kanban_api.validation import require_title
from kanban_api.views import card_out, cards_out

router = APIRouter(prefix="/api/cards", tags=["cards"])


async def _load_card(db: AsyncSession, card_id: str) -> Card:
  c = await get_card(db, card_id)
  if not c:
    raise NotFound("Card not found")
  return c


async def _validate_assignees(db: AsyncSession, user_ids: list[str]) -> list[str]:
  ids = list(dict.fromkeys(user_ids))
  found = await users_by_id(db, ids)
  if len(found) != len(ids):
    raise ValidationError("Assigned user not found")
  return ids


@router.get("/column/{column_id}", response_model=list[CardOut])
async def list_cards(column_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[CardOut]:
  col = await get_column(db, column_id)
  if not col:
    raise NotFound("Column not found")
  await require_board_access(col.board_id, access.can_read, user, db)
  res = await db.execute(
    select(Card).where(Card.column_id == column_id).order_by(Card.position.asc(), Card.created_at.asc())
  )
  return await cards_out(db, res.scalars().all())


@router.get("/{card_id}", response_model=CardOut)
async def get_card_detail(card_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> CardOut:
  c = await _load_card(db, card_id)
  await require_board_access(c.board_id, access.can_read, user, db)
  return await card_out(db, c)


@router.post("/column/{column_id}", response_model=CardOut, status_code=status.HTTP_201_CREATED)
async def create_card(
  column_id: str,
  payload: CardCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  col = await get_column(db, column_id)
  if not col:
    raise NotFound("Column not found")
  await require_board_access(col.board_id, access.can_write, user, db)
  title = require_title(payload.title)
  assignees = await _validate_assignees(db, payload.assignedTo)

  c = Card(
    title=title,
    description=payload.description or "",
    column_id=col.id,
    board_id=col.board_id,
    position=await next_card_position(db, col.id),
    priority=payload.priority,
    due_date=payload.dueDate,
    assigned_to=assignees,
    labels=[l.model_dump(mode="json") for l in payload.labels],
    checklist=[],
    attachments=[],
    comments=[],
  )
  db.add(c)
  await db.flush()
  col.card_ids = [*(col.card_ids or []), c.id]
  await db.flush()

  write_audit(
    event_type="card.created",
    entity_type="Card",
    entity_id=c.id,
    board_id=c.board_id,
    card_id=c.id,
    actor_id=user.id,
    payload={"title": c.title, "columnId": c.column_id, "priority": c.priority},
  )
  await db.commit()
  return await card_out(db, c)


@router.put("/{card_id}", response_model=CardOut)
async def update_card(
  card_id: str,
  payload: CardUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  c = await _load_card(db, card_id)
  await require_board_access(c.board_id, access.can_write, user, db)

  if payload.title is not None:
    c.title = require_title(payload.title)
  if payload.description is not None:
    c.description = payload.description
  if payload.priority is not None:
    c.priority = payload.priority
  if "dueDate" in payload.model_fields_set:
    c.due_date = payload.dueDate
  if payload.assignedTo is not None:
    c.assigned_to = await _validate_assignees(db, payload.assignedTo)
  if payload.labels is not None:
    c.labels = [l.model_dump(mode="json") for l in payload.labels]
  if payload.checklist is not None:
    c.checklist = [i.model_dump(mode="json") for i in payload.checklist]
  if payload.attachments is not None:
    stamped = []
    for a in payload.attachments:
      if a.uploadedAt is None:
        a = a.model_copy(update={"uploadedAt": utcnow()})
      stamped.append(a.model_dump(mode="json"))
    c.attachments = stamped
  if payload.isCompleted is not None:
    c.is_completed = payload.isCompleted
  await db.flush()

  write_audit(
    event_type="card.updated",
    entity_type="Card",
    entity_id=c.id,
    board_id=c.board_id,
    card_id=c.id,
    actor_id=user.id,
    payload={"fields": sorted(payload.model_fields_set)},
  )
  await db.commit()
  return await card_out(db, c)


@router.delete("/{card_id}", response_model=MessageOut)
async def delete_card(card_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> MessageOut:
  c = await _load_card(db, card_id)
  await require_board_access(c.board_id, access.can_write, user, db)
  board_id, column_id, title = c.board_id, c.column_id, c.title

  col = await get_column(db, column_id)
  if col:
    col.card_ids = [cid for cid in (col.card_ids or []) if cid != card_id]
    await db.flush()
  await db.execute(delete(Card).where(Card.id == card_id))

  write_audit(event_type="card.deleted", entity_type="Card", entity_id=card_id, board_id=board_id, card_id=card_id, actor_id=user.id, payload={"title": title})
  await db.commit()
  return MessageOut(message="Card deleted successfully")


@router.put("/{card_id}/move", response_model=CardOut)
async def move_card(
  card_id: str,
  payload: CardMoveIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  c = await _load_card(db, card_id)
  target = await get_column(db, payload.newColumnId)
  if not target:
    raise NotFound("Target column not found")
  await require_board_access(c.board_id, access.can_write, user, db)
  if target.board_id != c.board_id:
    raise ValidationError("Target column belongs to a different board")

  from_column_id = c.column_id
  source = await get_column(db, from_column_id)
  if source and source.id != target.id:
    source.card_ids = [cid for cid in (source.card_ids or []) if cid != card_id]
  # Pull then append, so the id ends up exactly once at the end of the target list.
  target.card_ids = [*(cid for cid in (target.card_ids or []) if cid != card_id), card_id]
  c.column_id = target.id
  c.position = payload.newPosition or 0
  await db.flush()

  write_audit(
    event_type="card.moved",
    entity_type="Card",
    entity_id=c.id,
    board_id=c.board_id,
    card_id=c.id,
    actor_id=user.id,
    payload={"fromColumnId": from_column_id, "toColumnId": target.id, "position": c.position},
  )
  await db.commit()
  return await card_out(db, c)


@router.post("/{card_id}/comments", response_model=CardOut)
async def add_comment(
  card_id: str,
  payload: CommentCreateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  c = await _load_card(db, card_id)
  await require_board_access(c.board_id, access.can_write, user, db)
  text = (payload.text or "").strip()
  if not text:
    raise ValidationError("Comment text is required")

  comment = {"user": user.id, "text": text, "createdAt": utcnow().isoformat()}
  c.comments = [*(c.comments or []), comment]
  await db.flush()

  write_audit(event_type="card.commented", entity_type="Card", entity_id=c.id, board_id=c.board_id, card_id=c.id, actor_id=user.id)
  await db.commit()
  return await card_out(db, c)


@router.put("/{card_id}/checklist/{item_index}", response_model=CardOut)
async def update_checklist_item(
  card_id: str,
  item_index: int,
  payload: ChecklistToggleIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> CardOut:
  c = await _load_card(db, card_id)
  await require_board_access(c.board_id, access.can_write, user, db)

  items = list(c.checklist or [])
  if 0 <= item_index < len(items):
    items[item_index] = {**items[item_index], "completed": payload.completed}
    c.checklist = items
    await db.flush()
    write_audit(
      event_type="card.checklist_toggled",
      entity_type="Card",
      entity_id=c.id,
      board_id=c.board_id,
      card_id=c.id,
      actor_id=user.id,
      payload={"index": item_index, "completed": payload.completed},
    )
    await db.commit()
  return await card_out(db, c)
