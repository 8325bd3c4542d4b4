from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from kanban_api.ai.context import build_board_context, count_cards
from kanban_api.ai.providers import AIProvider
from kanban_api.config import Settings
from kanban_api.deps import get_assistant, get_current_user, get_db, get_settings
from kanban_api.errors import ValidationError
from kanban_api.models import User
from kanban_api.schemas import BoardDetailOut, ChatContextOut, ChatIn, ChatOut
from kanban_api.store import user_boards
from kanban_api.views import board_details_out

router = APIRouter(prefix="/api/chatbot", tags=["chatbot"])


async def _detailed_boards(db: AsyncSession, user: User) -> list[BoardDetailOut]:
  return await board_details_out(db, await user_boards(db, user.id))


@router.post("/chat", response_model=ChatOut)
async def chat(
  payload: ChatIn,
  request: Request,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
  assistant: AIProvider = Depends(get_assistant),
) -> ChatOut:
  if payload.messages is None:
    raise ValidationError("Messages array is required")

  boards = await _detailed_boards(db, user)
  system = build_board_context(user, boards, description_chars=settings.ai_description_chars)
  messages = [{"role": "system", "content": system}, *(m.model_dump() for m in payload.messages)]
  referer = request.headers.get("origin") or request.headers.get("referer")
  reply = await assistant.complete(messages, referer=referer)
  return ChatOut(response=reply)


@router.get("/context", response_model=ChatContextOut)
async def get_context(
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
  settings: Settings = Depends(get_settings),
) -> ChatContextOut:
  boards = await _detailed_boards(db, user)
  return ChatContextOut(
    boards=boards,
    context=build_board_context(user, boards, description_chars=settings.ai_description_chars),
    totalBoards=len(boards),
    totalCards=sum(count_cards(b) for b in boards),
  )
