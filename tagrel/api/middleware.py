"""HTTP middleware: request tracing, logging and per-request presentation context."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import settings
from ..core.context import RequestContext
from ..core.logging import generate_request_id, get_logger, request_id_var

logger = get_logger("api.requests")

SHORT_ID_HEADER = "X-Short-ID"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

# Paths not worth a log line per request
_QUIET_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def resolve_short_id_enabled(header_value: str | None) -> bool:
    """
    Short-ID presentation flag for a request.

    The X-Short-ID header wins when it holds a recognised boolean;
    otherwise the SHORT_ID_ENABLED setting applies.
    """
    if header_value is not None:
        value = header_value.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
    return settings.SHORT_ID_ENABLED


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware для каждого HTTP запроса:

    - генерирует Request ID (заголовок X-Request-ID + ContextVar для логов)
    - кладёт RequestContext в request.state (флаг short ID)
    - логирует метод, путь, статус и время выполнения
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = generate_request_id()
        request_id_var.set(request_id)

        context = RequestContext(
            short_id_enabled=resolve_short_id_enabled(request.headers.get(SHORT_ID_HEADER))
        )
        request.state.request_context = context

        start_time = time.perf_counter()
        log_extra = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
            "short_id": context.short_id_enabled,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    **log_extra,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        response.headers["X-Request-ID"] = request_id

        if request.url.path not in _QUIET_PATHS:
            log = logger.info if response.status_code < 400 else logger.warning
            log(
                "Request completed",
                extra={
                    **log_extra,
                    "status": response.status_code,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                },
            )

        return response
