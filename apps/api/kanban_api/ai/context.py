"""Plain-text digest of a user's boards, sent as the assistant's system prompt."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from kanban_api.models import User
from kanban_api.schemas import BoardDetailOut

PREAMBLE = """You are a focused Kanban task assistant. Your role is ONLY to help with task management, board organization, and project planning.

IMPORTANT RULES:
- ONLY answer questions about tasks, boards, projects, and productivity
- If asked about anything else, say: "I only help with your Kanban tasks and boards. What would you like to know about your projects?"
- Be helpful but concise
- Reference specific tasks/boards when relevant"""

HELP_WITH = """You can help with:
- Task prioritization and organization
- Board structure optimization
- Project planning and deadlines
- Workflow improvements"""

GETTING_STARTED = """Since they're starting out, help with:
- Board setup and organization
- Task management basics
- Getting organized efficiently"""

REMEMBER = (
  "REMEMBER: Keep answers SHORT and FOCUSED. Only discuss Kanban, tasks, and productivity. "
  "Reference their specific data when helpful."
)


def _date(d: datetime) -> str:
  return f"{d.month}/{d.day}/{d.year}"


def _truncate(text: str, limit: int) -> str:
  return text[:limit] + ("..." if len(text) > limit else "")


def count_cards(board: BoardDetailOut) -> int:
  return sum(len(col.cards) for col in board.columns)


def priority_histogram(boards: Sequence[BoardDetailOut]) -> dict[str, int]:
  # Insertion order follows first appearance.
  stats: dict[str, int] = {}
  for b in boards:
    for col in b.columns:
      for card in col.cards:
        stats[card.priority] = stats.get(card.priority, 0) + 1
  return stats


def _board_lines(index: int, b: BoardDetailOut, description_chars: int) -> list[str]:
  total = count_cards(b)
  lines = [
    "",
    f'**{index}. "{b.title}"**',
    f"   - Description: {b.description or 'No description'}",
    f"   - Public: {'Yes' if b.isPublic else 'No'}",
    f"   - Members: {len(b.members)}",
    f"   - Columns: {len(b.columns)}",
    f"   - Total Cards: {total}",
    f"   - Created: {_date(b.createdAt)}",
  ]
  if not total:
    return lines
  lines.append("   - Columns & Cards:")
  for col in b.columns:
    if not col.cards:
      continue
    lines.append(f"     • {col.title} ({len(col.cards)} cards):")
    for card in col.cards:
      line = f'       - "{card.title}"'
      if card.priority:
        line += f" | Priority: {card.priority}"
      if card.dueDate:
        line += f" | Due: {_date(card.dueDate)}"
      if card.description:
        line += f" | Desc: {_truncate(card.description, description_chars)}"
      lines.append(line)
  return lines


def build_board_context(
  user: User | None,
  boards: Sequence[BoardDetailOut],
  *,
  description_chars: int = 100,
) -> str:
  parts = [PREAMBLE]
  if user is not None:
    parts.append(f"User Information:\n- Username: {user.username}\n- Email: {user.email}")

  if boards:
    total_cards = sum(count_cards(b) for b in boards)
    lines = [f"User's Boards ({len(boards)} total boards, {total_cards} total cards):"]
    for i, b in enumerate(boards, start=1):
      lines.extend(_board_lines(i, b, description_chars))
    parts.append("\n".join(lines))

    stats = priority_histogram(boards)
    if stats:
      parts.append("\n".join(["**Task Priority Summary:**", *(f"- {p}: {n} cards" for p, n in stats.items())]))
    parts.append(HELP_WITH)
  else:
    parts.append(GETTING_STARTED)

  parts.append(REMEMBER)
  return "\n\n".join(parts)
