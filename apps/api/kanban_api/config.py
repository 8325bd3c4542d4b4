from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://kanban:kanban@db:5432/kanban"
  jwt_secret: str = PLACEHOLDER_SECRET
  jwt_expire_days: int = 7
  app_version: str = "1.0.0"

  host: str = "0.0.0.0"
  port: int = 3001
  log_level: str = "INFO"

  cors_origins: str = "*"
  trusted_hosts: str = "*"

  ai_provider: str = "openrouter"  # openrouter | local
  openrouter_api_key: str | None = None
  openrouter_base_url: str = "https://openrouter.ai/api/v1"
  openrouter_model: str = "deepseek/deepseek-chat-v3-0324:free"
  ai_temperature: float = 0.7
  ai_max_tokens: int = 1000
  ai_timeout_seconds: float = 60
  ai_description_chars: int = 100

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]

  def is_test_db(self) -> bool:
    db_name = self.database_url.rsplit("/", 1)[-1]
    return "test" in db_name
