"""Board-level access rules.

Every predicate works on an already loaded board and the ids of its members,
so callers decide how to fetch them. A False result maps to a 403 response;
the caller is responsible for the 404 check that comes first.
"""

from __future__ import annotations

from collections.abc import Collection

from kanban_api.models import Board


def is_owner(actor_id: str, board: Board) -> bool:
  return board.owner_id == actor_id


def is_member(actor_id: str, member_ids: Collection[str]) -> bool:
  return actor_id in member_ids


def can_read(actor_id: str, board: Board, member_ids: Collection[str]) -> bool:
  return is_owner(actor_id, board) or is_member(actor_id, member_ids) or bool(board.is_public)


def can_write(actor_id: str, board: Board, member_ids: Collection[str]) -> bool:
  # Columns and cards are editable by owner and members; public visitors only read.
  return is_owner(actor_id, board) or is_member(actor_id, member_ids)


def can_update_notes(actor_id: str, board: Board, member_ids: Collection[str]) -> bool:
  return can_write(actor_id, board, member_ids)


def can_update_board_meta(actor_id: str, board: Board, member_ids: Collection[str]) -> bool:
  return is_owner(actor_id, board)


def can_delete_board(actor_id: str, board: Board, member_ids: Collection[str]) -> bool:
  return is_owner(actor_id, board)


def can_manage_members(actor_id: str, board: Board, member_ids: Collection[str]) -> bool:
  return is_owner(actor_id, board)
