"""Base repository with common operations and storage error wrapping."""

from typing import Any, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import StorageError
from ..core.logging import get_logger
from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий.

    Все обращения к БД идут через _execute()/_flush(): любая ошибка движка
    превращается в один StorageError с именем операции и исходной причиной.
    Повторов нет - политика retry на стороне вызывающего кода.

    Репозиторий не делает commit: границы транзакции задаёт вызывающий код
    (get_db в API или transactional() в сервисах).
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    async def _execute(self, operation: str, statement: Any):
        """Execute a statement, wrapping engine failures into StorageError."""
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as exc:
            raise self._storage_error(operation, exc) from exc

    async def _flush(self, operation: str) -> None:
        """Flush pending objects, wrapping engine failures into StorageError."""
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise self._storage_error(operation, exc) from exc

    def _storage_error(self, operation: str, exc: SQLAlchemyError) -> StorageError:
        logger.error(
            "Storage operation failed",
            extra={
                "operation": operation,
                "table": self.model.__tablename__,
                "error": str(exc),
            },
        )
        return StorageError(operation, exc)

