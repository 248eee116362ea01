"""FastAPI application initialization."""

import logging
import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from text_search.api import admin, health, search, stats
from text_search.config import get_settings
from text_search.constants import SERVICE_NAME, SERVICE_VERSION
from text_search.exceptions import AuthError, TextSearchError
from text_search.logging_config import setup_logfire
from text_search.middleware.request_context import RequestContextMiddleware
from text_search.services.search_index import get_search_engine, rebuild_search_engine
from text_search.sheets.client import build_sheets_store

logger = logging.getLogger(__name__)


async def build_initial_index() -> None:
    """Build the search index at startup; the service starts even if this fails."""
    settings = get_settings()
    try:
        store = build_sheets_store(settings)
        await rebuild_search_engine(store, settings)
    except TextSearchError as e:
        logfire.warning(
            "Search index not built at startup, waiting for /refresh",
            error=str(e),
            error_type=type(e).__name__,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    setup_logfire(app)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            environment=settings.env,
            integrations=[FastApiIntegration()],
        )

    await build_initial_index()

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        stats_enabled=settings.stats_enabled,
        indexed_pages=len(get_search_engine().current or ()),
    )

    yield

    logfire.info("Application shutdown complete")


app = FastAPI(
    title=SERVICE_NAME,
    description="Full-text search over the Edu365 site catalog",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(TextSearchError)
async def text_search_error_handler(request: Request, exc: TextSearchError):
    """Report operation failures as plain text."""
    status_code = 403 if isinstance(exc, AuthError) else 500
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return PlainTextResponse(f"ERROR: {exc}", status_code=status_code)


# Correlation ID and client origin for every request
app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(search.router, tags=["search"])
app.include_router(admin.router, tags=["admin"])
app.include_router(stats.router, tags=["stats"])


@app.get("/")
def root():
    """Root endpoint."""
    index = get_search_engine().current
    return {
        "message": f"{SERVICE_NAME} API",
        "version": SERVICE_VERSION,
        "indexed_pages": len(index) if index is not None else 0,
    }


def run(host: str = "0.0.0.0", port: int | None = None, reload: bool = False) -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    port = port or int(os.getenv("PORT", 8000))
    uvicorn.run("text_search.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run(reload=os.getenv("ENV") == "local")
