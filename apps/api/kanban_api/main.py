from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from time import monotonic

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware

from kanban_api.config import PLACEHOLDER_SECRET, Settings
from kanban_api.db import create_engine, init_db, make_sessionmaker
from kanban_api.errors import KanbanError
from kanban_api.routers.auth import router as auth_router
from kanban_api.routers.boards import router as boards_router
from kanban_api.routers.cards import router as cards_router
from kanban_api.routers.chatbot import router as chatbot_router
from kanban_api.routers.columns import router as columns_router
from kanban_api.routers.users import router as users_router

logger = logging.getLogger(__name__)


def _endpoint_map() -> dict[str, str]:
  return {
    "auth": "/api/auth",
    "boards": "/api/boards",
    "columns": "/api/columns",
    "cards": "/api/cards",
    "users": "/api/users",
    "chatbot": "/api/chatbot",
    "health": "/api/health",
  }


def create_app(settings: Settings | None = None) -> FastAPI:
  settings = settings or Settings()
  engine = create_engine(settings)

  @asynccontextmanager
  async def lifespan(app: FastAPI):
    if settings.jwt_secret == PLACEHOLDER_SECRET and not settings.is_test_db():
      raise RuntimeError("Refusing to start with the placeholder JWT_SECRET. Set JWT_SECRET in the environment.")
    await init_db(engine)
    logger.info("Kanban API %s ready", settings.app_version)
    yield
    await engine.dispose()

  app = FastAPI(title="Kanban API", version=settings.app_version, lifespan=lifespan)
  app.state.settings = settings
  app.state.engine = engine
  app.state.sessionmaker = make_sessionmaker(engine)

  @app.exception_handler(KanbanError)
  async def _kanban_error_handler(_, exc: KanbanError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

  @app.exception_handler(Exception)
  async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Something went wrong!"})

  allow_all = settings.cors_origin_list() == ["*"]
  app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=not allow_all,
    allow_methods=["*"],
    allow_headers=["*"],
  )
  app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

  app.include_router(auth_router)
  app.include_router(boards_router)
  app.include_router(columns_router)
  app.include_router(cards_router)
  app.include_router(users_router)
  app.include_router(chatbot_router)

  @app.middleware("http")
  async def _request_log_middleware(request, call_next):
    start = monotonic()
    response = await call_next(request)
    elapsed_ms = (monotonic() - start) * 1000.0
    logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return response

  @app.get("/api/health")
  async def health() -> dict:
    return {"status": "OK", "message": "Kanban API is running"}

  @app.get("/")
  async def root() -> dict:
    return {"message": "Welcome to the Kanban API", "version": settings.app_version, "endpoints": _endpoint_map()}

  return app
