"""
Dependencies для FastAPI endpoints.

Цепочка зависимостей:
    get_db -> сессия БД (commit при успехе, rollback при ошибке)
    get_request_context -> RequestContext из middleware (флаг short ID)
    get_*_repository / get_*_service -> объекты, готовые к использованию
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.context import RequestContext
from ..core.database import AsyncSessionLocal
from ..repositories import TagRelationRepository
from ..services import TagMergeService, TagRelationService
from .middleware import SHORT_ID_HEADER, resolve_short_id_enabled

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # 401 формируем сами
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str = Depends(api_key_header)) -> str:
    """
    Проверка API ключа из заголовка X-API-Key.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/tag-relations/...
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Сессия БД на один запрос.

    commit() при успехе, rollback() при ошибке, close() в любом случае.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


async def get_request_context(request: Request) -> RequestContext:
    """
    RequestContext текущего запроса.

    Обычно его уже положил RequestLoggingMiddleware; если middleware не
    подключено, собираем контекст из заголовка X-Short-ID сами.
    """
    context = getattr(request.state, "request_context", None)
    if context is None:
        context = RequestContext(
            short_id_enabled=resolve_short_id_enabled(request.headers.get(SHORT_ID_HEADER))
        )
    return context


# ============================================================================
# REPOSITORY / SERVICE DEPENDENCIES
# ============================================================================


async def get_tag_relation_repository(
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
) -> TagRelationRepository:
    return TagRelationRepository(db, context=context)


async def get_tag_relation_service(
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
) -> TagRelationService:
    return TagRelationService(db, context=context)


async def get_tag_merge_service(
    db: AsyncSession = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
) -> TagMergeService:
    return TagMergeService(db, context=context)
