from __future__ import annotations

from kanban_api.errors import ValidationError

MIN_USERNAME_LEN = 3
MIN_PASSWORD_LEN = 6


def require_title(title: str | None) -> str:
  t = (title or "").strip()
  if not t:
    raise ValidationError("Title is required")
  return t


def validate_username(username: str) -> str:
  name = (username or "").strip()
  if len(name) < MIN_USERNAME_LEN:
    raise ValidationError("Username must be at least 3 characters long")
  return name


def validate_new_password(password: str, *, label: str = "Password") -> str:
  if len(password or "") < MIN_PASSWORD_LEN:
    raise ValidationError(f"{label} must be at least 6 characters long")
  return password
