from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
  return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
  return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, *, secret: str, expires_days: int) -> str:
  now = datetime.now(timezone.utc)
  claims = {"sub": user_id, "iat": now, "exp": now + timedelta(days=expires_days)}
  return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, *, secret: str) -> str | None:
  try:
    claims = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
  except JWTError:
    return None
  sub = claims.get("sub")
  return sub if isinstance(sub, str) and sub else None
