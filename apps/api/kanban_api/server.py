from __future__ import annotations

import logging

import uvicorn

from kanban_api.config import Settings
from kanban_api.main import create_app


def run() -> None:
  settings = Settings()
  logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
  )
  uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
  run()
