"""Trellone API entrypoint: lifespan, middleware, and router wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi_pagination import add_pagination

from trellone.api.boards import router as boards_router
from trellone.api.cards import router as cards_router
from trellone.api.columns import router as columns_router
from trellone.api.invitations import router as invitations_router
from trellone.api.realtime import router as realtime_router
from trellone.api.roles import router as roles_router
from trellone.api.users import router as users_router
from trellone.api.workspaces import router as workspaces_router
from trellone.core.config import settings
from trellone.core.error_handling import install_error_handling
from trellone.core.logging import configure_logging, get_logger
from trellone.db.session import init_db
from trellone.schemas.health import HealthStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {"name": "health", "description": "Liveness and readiness checks."},
    {"name": "users", "description": "Caller profile endpoints."},
    {"name": "roles", "description": "Persisted workspace and board role registry."},
    {
        "name": "workspaces",
        "description": "Workspace lifecycle, member and guest management, and board joins.",
    },
    {
        "name": "boards",
        "description": "Board lifecycle, hydrated board view, column ordering, and card moves.",
    },
    {"name": "columns", "description": "Column create/update/delete and card ordering."},
    {"name": "cards", "description": "Card edits, archive, members, and comments."},
    {"name": "invitations", "description": "Board invitations and invite-token verification."},
    {"name": "realtime", "description": "WebSocket room sync for boards and workspaces."},
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize application resources before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_migrate=%s",
        settings.environment,
        settings.db_auto_migrate,
    )
    await init_db()
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="Trellone API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    responses={status.HTTP_200_OK: {"description": "Service is alive."}},
)
def health() -> HealthStatusResponse:
    """Lightweight liveness endpoint."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/readyz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Readiness Check",
    responses={status.HTTP_200_OK: {"description": "Service is ready."}},
)
def readyz() -> HealthStatusResponse:
    return HealthStatusResponse(ok=True)


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(users_router)
api_v1.include_router(roles_router)
api_v1.include_router(workspaces_router)
api_v1.include_router(boards_router)
api_v1.include_router(columns_router)
api_v1.include_router(cards_router)
api_v1.include_router(invitations_router)
api_v1.include_router(realtime_router)
app.include_router(api_v1)

add_pagination(app)

logger.debug("app.routes.registered count=%s", len(app.routes))
