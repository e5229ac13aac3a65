# backend/civicmatch/main.py
from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Any, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from civicmatch.api.utils.responses import error_payload, now_z
from civicmatch.config import settings
from civicmatch.database.connection import (
    check_database_health,
    close_database_connections,
    init_db,
)
from civicmatch.exceptions import ConfigurationError, InvalidInputError, TerminologyError
from civicmatch.services.terminology_definitions import get_taxonomy

from civicmatch.api.routes.terminology import router as terminology_router
from civicmatch.api.routes.priorities import router as priorities_router

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = settings.LOG_LEVEL.upper()


def _log_handlers() -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.LOG_FILE, encoding="utf-8"))
    return handlers


logging.basicConfig(level=LOG_LEVEL, format=settings.LOG_FORMAT, handlers=_log_handlers())
logger = logging.getLogger(__name__)


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
        db = check_database_health()
        if db.get("status") != "healthy":
            logger.error("Database unavailable at startup: %s", db.get("error"))

        # a broken taxonomy is fatal at startup
        taxonomy = get_taxonomy()

        logger.info(
            "%s %s started (env=%s, taxonomy=%s, categories=%d, strategy=%s)",
            settings.APP_NAME,
            settings.APP_VERSION,
            settings.ENVIRONMENT,
            settings.TAXONOMY_PATH or "built-in",
            len(taxonomy),
            settings.DEFAULT_MAPPING_STRATEGY,
        )
        yield
    except Exception as e:
        logger.error("Startup failed: %s", e, exc_info=True)
        raise
    finally:
        try:
            close_database_connections()
        except Exception as e:
            logger.error("Shutdown error: %s", e, exc_info=True)


app = FastAPI(
    title=settings.APP_NAME,
    description="Maps colloquial voter priorities to formal policy positions",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def time_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    logger.info("%s %s -> %s in %.3fs", request.method, request.url.path, response.status_code, elapsed)
    return response


# =============================================================================
# ERROR HANDLERS
# =============================================================================

_TERMINOLOGY_STATUS = {
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_payload(message, **extra))


@app.exception_handler(TerminologyError)
async def terminology_error_handler(request: Request, exc: TerminologyError):
    code = _TERMINOLOGY_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code < 500:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(code, exc.message, code=exc.code, details=exc.details or None)
    logger.error("Terminology configuration error on %s: %s", request.url.path, exc.message)
    return _error_response(code, exc.message, code=exc.code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    logger.warning("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
    return _error_response(exc.status_code, str(exc.detail), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": str(err.get("msg", "")), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning("Invalid request body on %s: %s", request.url.path, problems)
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", details=problems)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        message=str(exc) if settings.expose_error_details else "An error occurred",
    )


# =============================================================================
# ROUTES
# =============================================================================

app.include_router(terminology_router, prefix="/api")
app.include_router(priorities_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "operational",
        "documentation": "/docs",
        "endpoints": {
            "terminology": "/api/terminology",
            "priorities": "/api/priorities",
            "health": "/health",
        },
        "timestamp": now_z(),
    }


@app.get("/health")
async def health():
    db = check_database_health()
    try:
        taxonomy = {"status": "loaded", "categories": len(get_taxonomy())}
    except ConfigurationError as e:
        taxonomy = {"status": "error", "error": e.message}

    if taxonomy["status"] != "loaded":
        overall = "unhealthy"
    elif db.get("status") != "healthy":
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "status": overall,
        "version": settings.APP_VERSION,
        "database": db,
        "taxonomy": taxonomy,
        "timestamp": now_z(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "civicmatch.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.reload_enabled,
        log_level=settings.LOG_LEVEL.lower(),
    )
