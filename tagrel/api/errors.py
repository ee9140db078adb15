"""
Обработчики ошибок (Exception Handlers) для API.

Все ошибки отдаются в едином формате ErrorResponse:
- APIError (наши ошибки, например ValidationError_) -> свой status_code
- RequestValidationError (Pydantic) -> 422 VALIDATION_ERROR
- StorageError (ошибка хранилища) -> 500 DATABASE_ERROR, без деталей
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.exceptions import StorageError
from ..core.logging import get_logger
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = get_logger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для всех API ошибок.

    Использование:
        raise APIError(code="CONFLICT", message="...", status_code=409)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError_(APIError):
    """
    Ошибка валидации бизнес-логики (400).

    Использование:
        raise ValidationError_("Cannot merge tag with itself")
    """

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


def _error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning("API error", extra={"code": exc.code, "error": exc.message})

    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]
    return _error_response(exc.status_code, exc.code, exc.message, details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Ошибки Pydantic (422) в нашем формате.

    loc вида ["body", "target_tag_id"] превращается в field="target_tag_id".
    """
    logger.warning("Request validation error", extra={"errors": exc.errors()})

    details = []
    for error in exc.errors():
        field_path = error.get("loc", [])
        field_name = str(field_path[-1]) if field_path else "unknown"
        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])
        details.append(ErrorDetail(field=field_name, message=error.get("msg", "Invalid value")))

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Ошибка валидации входных данных",
        details,
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """
    StorageError -> 500.

    Причину пишем в лог, клиенту её не показываем.
    """
    logger.error(
        "Storage error",
        extra={"operation": exc.operation, "error": str(exc.cause), "path": request.url.path},
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "Ошибка базы данных"
    )


def register_error_handlers(app):
    """Регистрирует все error handlers в приложении FastAPI (вызывается из main.py)."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
