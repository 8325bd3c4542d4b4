from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.audit import write_audit
from kanban_api.deps import get_current_user, get_db
from kanban_api.errors import ValidationError
from kanban_api.models import User
from kanban_api.schemas import MessageOut, PasswordChangeIn, ProfileUpdateIn, UserOut, UserRef
from kanban_api.security import hash_password, verify_password
from kanban_api.validation import validate_new_password, validate_username
from kanban_api.views import user_out, user_ref

router = APIRouter(prefix="/api/users", tags=["users"])


def _like_pattern(q: str) -> str:
  escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
  return f"%{escaped}%"


@router.get("/search", response_model=list[UserRef])
async def search_users(
  query: str = "",
  limit: int = Query(default=10, ge=1, le=100),
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[UserRef]:
  q = query.strip()
  if len(q) < 2:
    raise ValidationError("Query must be at least 2 characters long")
  res = await db.execute(
    select(User)
    .where(User.username.ilike(_like_pattern(q), escape="\\"), User.id != user.id)
    .order_by(User.username.asc())
    .limit(limit)
  )
  return [user_ref(u) for u in res.scalars().all()]


@router.get("/profile", response_model=UserOut)
async def get_profile(user: User = Depends(get_current_user)) -> UserOut:
  return user_out(user)


@router.put("/profile", response_model=UserOut)
async def update_profile(
  payload: ProfileUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> UserOut:
  username = validate_username(payload.username or "")
  res = await db.execute(
    select(User.id).where(func.lower(User.username) == username.lower(), User.id != user.id)
  )
  if res.scalar_one_or_none():
    raise ValidationError("Username already taken")
  user.username = username
  write_audit(event_type="user.updated", entity_type="User", entity_id=user.id, actor_id=user.id, payload={"username": username})
  await db.commit()
  return user_out(user)


@router.put("/change-password", response_model=MessageOut)
async def change_password(
  payload: PasswordChangeIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> MessageOut:
  if not payload.currentPassword or not payload.newPassword:
    raise ValidationError("Current password and new password are required")
  validate_new_password(payload.newPassword, label="New password")
  if not verify_password(payload.currentPassword, user.password_hash):
    raise ValidationError("Current password is incorrect")
  user.password_hash = hash_password(payload.newPassword)
  write_audit(event_type="user.password_changed", entity_type="User", entity_id=user.id, actor_id=user.id)
  await db.commit()
  return MessageOut(message="Password changed successfully")
