from __future__ import annotations

from fastapi import status


class KanbanError(Exception):
  status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
  default_message = "Something went wrong!"

  def __init__(self, message: str | None = None) -> None:
    self.message = message or self.default_message
    super().__init__(self.message)


class NotFound(KanbanError):
  status_code = status.HTTP_404_NOT_FOUND
  default_message = "Not found"


class AccessDenied(KanbanError):
  status_code = status.HTTP_403_FORBIDDEN
  default_message = "Access denied"


class ValidationError(KanbanError):
  status_code = status.HTTP_400_BAD_REQUEST
  default_message = "Invalid request"


class AuthenticationFailed(KanbanError):
  status_code = status.HTTP_401_UNAUTHORIZED
  default_message = "Not authenticated"


class UpstreamUnavailable(KanbanError):
  status_code = status.HTTP_503_SERVICE_UNAVAILABLE
  default_message = "AI assistant is not configured"


class UpstreamAuthFailed(KanbanError):
  status_code = status.HTTP_401_UNAUTHORIZED
  default_message = "Invalid API key. Please check your OpenRouter API key."


class UpstreamRateLimited(KanbanError):
  status_code = status.HTTP_429_TOO_MANY_REQUESTS
  default_message = "Rate limit exceeded. Please try again later."


class UpstreamError(KanbanError):
  status_code = status.HTTP_502_BAD_GATEWAY
  default_message = "Failed to get response from AI assistant. Please try again."
