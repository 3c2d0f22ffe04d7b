"""KVDesk API: FastAPI application entry point.

Invariants:
    - Routes come from the static route table (no auto-discovery)
    - Global error handlers map KVDeskError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - KV registry initialized on startup and closed on shutdown via lifespan
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kvdesk.api.error_handlers import register_error_handlers
from kvdesk.api.route_table import RouteConfig, build_router
from kvdesk.api.routes import auth, entries, files, health, stores
from kvdesk.config import get_settings
from kvdesk.infrastructure.kv_registry import close_kv, init_kv
from kvdesk.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)

ROUTE_TABLE: list[RouteConfig] = [
    *auth.ROUTES,
    *stores.ROUTES,
    *entries.ROUTES,
    *files.ROUTES,
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_kv(settings)
    logger.info("KVDesk API started")
    yield
    await close_kv()
    logger.info("KVDesk API shutting down")


app = FastAPI(title="KVDesk API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(build_router(ROUTE_TABLE))

register_error_handlers(app)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run("kvdesk.main:app", host="0.0.0.0", port=8000)
