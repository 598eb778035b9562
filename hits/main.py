"""
FastAPI application entrypoint.

Lifespan:
  • On startup: verify DB connectivity.
  • On shutdown: dispose the engine cleanly.

Routers:
  • /hits, /badge, /stats — hit counting and aggregate statistics
  • /ws — live feed of recorded hit keys
  • / and /health — metadata and shallow liveness probe
"""

import logging
import time
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hits.core.config import settings
from hits.core.database import engine
from hits.routers.hits import NO_CACHE_HEADERS, router as hits_router
from hits.routers.ws import router as ws_router
from hits.schemas.stats import AppInfo

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    # Startup — verify DB is reachable
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified ✓")
    except Exception:
        logger.warning(
            "Could not reach the database on startup. "
            "The app will start, but requests will fail until the DB is available."
        )

    yield  # ← application runs here

    # Shutdown — clean up connection pool
    await engine.dispose()
    logger.info("Database engine disposed ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description=(
        "Increment and retrieve hit counts by key. "
        "Provides a shields.io-compatible /badge/{key} endpoint and "
        "a WebSocket feed at /ws of every recorded hit."
    ),
    lifespan=lifespan,
)

# Mount routers
app.include_router(hits_router)
app.include_router(ws_router)


# ── Request logging ─────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
    """One line per request: method, path, status and latency."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.error(
            "HTTP %s %s failed after %.1fms",
            request.method, request.url.path, elapsed_ms,
        )
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "HTTP %s %s status=%d latency=%.1fms",
        request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response


# ── Error handling ──────────────────────────────────────────
@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Unexpected database errors: generic 500, never cacheable."""
    logger.exception(
        "Database error processing %s %s", request.method, request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected database error occurred."},
        headers=NO_CACHE_HEADERS,
    )


# ── Meta ────────────────────────────────────────────────────
@app.get(
    "/",
    response_model=AppInfo,
    tags=["Meta"],
    summary="App info",
)
async def app_info() -> AppInfo:
    return AppInfo(
        project_name=settings.APP_NAME,
        version=settings.VERSION,
        docs_path=app.docs_url or "/docs",
    )


@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}
