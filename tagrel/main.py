"""
Главный файл FastAPI приложения Tag Relation Service.

Запуск:
    uvicorn tagrel.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc

Все endpoints связей доступны по пути /api/v1/tag-relations/...
и требуют заголовок X-API-Key.
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .api import relations_router
from .api.dependencies import verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import AsyncSessionLocal
from .core.logging import get_logger, setup_logging

setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

logger = get_logger(__name__)

APP_VERSION = "1.0.0"
APP_START_TIME: float = 0.0  # set on startup

RATE_LIMIT = "100/minute"

# ============================================================================
# RATE LIMITER
# ============================================================================

limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 в едином формате ErrorResponse."""
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Слишком много запросов. Лимит: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global APP_START_TIME

    APP_START_TIME = time.time()
    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "short_id_enabled": settings.SHORT_ID_ENABLED,
            "merge_isolation_level": settings.MERGE_ISOLATION_LEVEL,
        },
    )

    yield

    logger.info("Application stopped", extra={"uptime_seconds": int(time.time() - APP_START_TIME)})


# ============================================================================
# APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Связи тегов с объектами контента.

    ## Возможности

    * **Жизненный цикл связей** - available / hidden / deleted по объекту или по ID
    * **Привязка тегов без дубликатов** - одна связь на пару (тег, объект)
    * **Слияние тегов** - перенос объектов одного тега на другой одной транзакцией
    * **Short ID** - короткие ID объектов в ответах (X-Short-ID: true)
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

# Request ID, RequestContext (short ID flag) и лог каждого запроса
app.add_middleware(RequestLoggingMiddleware)

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(relations_router)

app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

register_error_handlers(app)


# ============================================================================
# ROOT / HEALTH
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint")
@limiter.limit(RATE_LIMIT)
async def root(request: Request):
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "api_version": "v1",
        "docs": "/docs",
        "endpoints": {"tag_relations": "/api/v1/tag-relations"},
        "short_id_enabled": settings.SHORT_ID_ENABLED,
        "rate_limit": RATE_LIMIT,
    }


@app.get("/health", tags=["health"], summary="Health check")
@limiter.limit(RATE_LIMIT)
async def health_check(request: Request):
    """
    Проверка доступности API и подключения к БД.

    200 {"status": "ok", ...} или 503 {"status": "error", ...}
    """
    uptime_seconds = int(time.time() - APP_START_TIME) if APP_START_TIME > 0 else 0

    db_status = "disconnected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_status = "connected"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unavailable", extra={"error": str(e)})

    ok = db_status == "connected"
    return JSONResponse(
        status_code=200 if ok else 503,
        content={
            "status": "ok" if ok else "error",
            "checks": {
                "database": db_status,
                "version": APP_VERSION,
                "uptime_seconds": uptime_seconds,
            },
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
