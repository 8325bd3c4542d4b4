from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from kanban_api.config import Settings
from kanban_api.errors import UpstreamAuthFailed, UpstreamError, UpstreamRateLimited, UpstreamUnavailable

logger = logging.getLogger(__name__)

EMPTY_REPLY = "Sorry, I could not generate a response."
MISSING_KEY_MESSAGE = (
  "OpenRouter API key not configured. Please add OPENROUTER_API_KEY to your environment variables."
)


class AIProvider(Protocol):
  async def complete(self, messages: list[dict[str, str]], *, referer: str | None = None) -> str: ...


@dataclass
class LocalDeterministicProvider:
  async def complete(self, messages: list[dict[str, str]], *, referer: str | None = None) -> str:
    # Deterministic, offline-friendly behavior suitable for development and tests.
    system = next((m["content"] for m in messages if m.get("role") == "system"), "")
    question = next((m["content"] for m in reversed(messages) if m.get("role") == "user"), "")
    summary = next((line for line in system.splitlines() if line.startswith("User's Boards")), "")
    if not summary:
      summary = "No boards yet. Start by creating a board and a few cards."
    if not question.strip():
      return EMPTY_REPLY
    return f"{summary.rstrip(':')}\nYou asked: {question.strip()}"


@dataclass
class OpenRouterProvider:
  api_key: str
  base_url: str
  model: str
  temperature: float = 0.7
  max_tokens: int = 1000
  timeout: float = 60
  transport: httpx.AsyncBaseTransport | None = None

  async def complete(self, messages: list[dict[str, str]], *, referer: str | None = None) -> str:
    headers = {
      "Authorization": f"Bearer {self.api_key}",
      "HTTP-Referer": referer or "",
      "X-Title": "Kanban Assistant",
    }
    async with httpx.AsyncClient(
      base_url=self.base_url, headers=headers, timeout=self.timeout, transport=self.transport
    ) as client:
      # OpenAI-compatible chat completions API, single attempt.
      try:
        r = await client.post(
          "/chat/completions",
          json={
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
          },
        )
      except httpx.HTTPError as exc:
        logger.warning("AI completion request failed: %s", exc)
        raise UpstreamError() from exc

    if r.status_code >= 400:
      logger.warning("AI completion returned status %s", r.status_code)
      if r.status_code == 401:
        raise UpstreamAuthFailed()
      if r.status_code == 429:
        raise UpstreamRateLimited()
      raise UpstreamError(_remote_error_message(r))

    try:
      data = r.json()
    except ValueError as exc:
      raise UpstreamError() from exc
    return _first_choice_content(data) or EMPTY_REPLY


def _remote_error_message(r: httpx.Response) -> str | None:
  try:
    data = r.json()
  except ValueError:
    return None
  err = data.get("error") if isinstance(data, dict) else None
  if isinstance(err, dict) and err.get("message"):
    return str(err["message"])
  return None


def _first_choice_content(data: Any) -> str:
  if not isinstance(data, dict):
    return ""
  choices = data.get("choices") or []
  if not choices or not isinstance(choices[0], dict):
    return ""
  message = choices[0].get("message") or {}
  return str(message.get("content") or "")


def get_ai_provider(settings: Settings) -> AIProvider:
  if settings.ai_provider.lower() == "openrouter":
    if not settings.openrouter_api_key:
      raise UpstreamUnavailable(MISSING_KEY_MESSAGE)
    return OpenRouterProvider(
      api_key=settings.openrouter_api_key,
      base_url=settings.openrouter_base_url,
      model=settings.openrouter_model,
      temperature=settings.ai_temperature,
      max_tokens=settings.ai_max_tokens,
      timeout=settings.ai_timeout_seconds,
    )
  return LocalDeterministicProvider()
