from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.audit import write_audit
from kanban_api.config import Settings
from kanban_api.deps import get_db, get_settings
from kanban_api.errors import AuthenticationFailed, ValidationError
from kanban_api.models import User
from kanban_api.schemas import AuthOut, LoginIn, RegisterIn
from kanban_api.security import create_access_token, hash_password, verify_password
from kanban_api.validation import validate_new_password, validate_username
from kanban_api.views import user_out

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _normalize_email(email: str) -> str:
  e = (email or "").strip().lower()
  if not e or "@" not in e or e.startswith("@") or e.endswith("@"):
    raise ValidationError("Invalid email")
  return e


def _auth_out(u: User, settings: Settings) -> AuthOut:
  token = create_access_token(u.id, secret=settings.jwt_secret, expires_days=settings.jwt_expire_days)
  return AuthOut(user=user_out(u), token=token)


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(
  payload: RegisterIn,
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
) -> AuthOut:
  username = validate_username(payload.username)
  email = _normalize_email(payload.email)
  password = validate_new_password(payload.password)

  res = await db.execute(select(User.id).where(User.email == email))
  if res.scalar_one_or_none():
    raise ValidationError("Email already exists")
  res = await db.execute(select(User.id).where(func.lower(User.username) == username.lower()))
  if res.scalar_one_or_none():
    raise ValidationError("Username already taken")

  u = User(username=username, email=email, password_hash=hash_password(password))
  db.add(u)
  await db.flush()
  write_audit(event_type="user.registered", entity_type="User", entity_id=u.id, actor_id=u.id, payload={"username": username})
  await db.commit()
  return _auth_out(u, settings)


@router.post("/login", response_model=AuthOut)
async def login(
  payload: LoginIn,
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
) -> AuthOut:
  email = (payload.email or "").strip().lower()
  res = await db.execute(select(User).where(User.email == email))
  u = res.scalar_one_or_none()
  if not u or not verify_password(payload.password or "", u.password_hash):
    raise AuthenticationFailed("Invalid credentials")
  return _auth_out(u, settings)
