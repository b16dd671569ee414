"""
Article Press API

Thin FastAPI backend serving markdown articles, their rendered HTML and
content lint reports.
"""

import logging
import os
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from press.config import get_settings
from press.middleware import (
    RequestIDLogFilter,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from press.routers import articles
from press.services.content_store import get_content_store

logger = logging.getLogger(__name__)

settings = get_settings()

# Health check cache: (result_dict, timestamp)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds


def _install_log_filter() -> None:
    """Attach the request-id filter to every root handler."""
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIDLogFilter) for f in handler.filters):
            handler.addFilter(RequestIDLogFilter())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    _install_log_filter()
    store = get_content_store()
    logger.info(
        "Serving %d articles from %s", len(store.articles()), store.content_dir
    )
    yield


app = FastAPI(
    title="Article Press API",
    description="Markdown articles with frontmatter, rendered and linted",
    version="0.1.0",
    lifespan=lifespan,
)

# Security headers and request IDs (CORS, added last, wraps both)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

# Routers
app.include_router(articles.router, prefix="/api/press")


def _check_content() -> str:
    """Verify the content directory is readable. Returns 'ok' or 'fail'."""
    store = get_content_store()
    if store.is_available() and os.access(store.content_dir, os.R_OK):
        return "ok"
    return "fail"


def _check_articles() -> str:
    """'ok' when every article file parses, 'fail' otherwise."""
    store = get_content_store()
    store.articles()
    return "fail" if store.errors() else "ok"


def _run_health_checks() -> dict[str, Any]:
    """Run all health checks, returning the full response body."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    checks = {"content": _check_content(), "articles": _check_articles()}
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        overall = "degraded"
        logger.warning("Health check degraded, failed: %s", ", ".join(failed))
    else:
        overall = "ok"

    result: dict[str, Any] = {
        "status": overall,
        "service": "article-press-api",
        "version": "0.1.0",
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/api/press/health")
async def health_check() -> JSONResponse:
    """Health check verifying the content directory."""
    result = _run_health_checks()
    status_code = 200 if result["status"] in ("ok", "degraded") else 503
    return JSONResponse(content=result, status_code=status_code)
