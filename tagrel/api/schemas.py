"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.
Репозиторий отдаёт TagRelationRecord (dataclass), схемы читают его через
from_attributes.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from ..models import TagRelationStatus

# ============================================================================
# TAG RELATION SCHEMAS
# ============================================================================


class TagRelationCreate(BaseModel):
    """
    Одна новая связь.

    Пример:
    {
        "tag_id": "10050000000000003",
        "object_id": "11D",
        "status": "available"
    }
    """

    tag_id: str = Field(..., min_length=1, max_length=64, description="ID тега")
    object_id: str = Field(
        ..., min_length=1, max_length=64, description="ID объекта (канонический или короткий)"
    )
    status: TagRelationStatus = Field(TagRelationStatus.AVAILABLE, description="Начальный статус")


class TagRelationBatchCreate(BaseModel):
    """Пакет новых связей (POST /tag-relations)."""

    relations: list[TagRelationCreate] = Field(..., min_length=1)


class TagRelationResponse(BaseModel):
    """
    Связь тег <-> объект в ответе API.

    Пример ответа:
    {
        "id": 1,
        "tag_id": "10050000000000003",
        "object_id": "11D",
        "status": "hidden",
        "created_at": "2026-10-18T12:00:00"
    }
    """

    id: int
    tag_id: str
    object_id: str
    status: TagRelationStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ObjectTagsRequest(BaseModel):
    """Набор тегов объекта (POST/PUT /tag-relations/objects/{object_id}/tags)."""

    tag_ids: list[Annotated[str, Field(min_length=1, max_length=64)]] = Field(
        default_factory=list, description="ID тегов"
    )


class RelationIdsRequest(BaseModel):
    """ID связей для массовых операций."""

    ids: list[int] = Field(..., min_length=1)


class EnableRelationsRequest(RelationIdsRequest):
    """ids + флаг: hide=true включает связи скрытыми."""

    hide: bool = False


class RelationLookupResponse(BaseModel):
    """
    Результат поиска связи: отсутствие - это не ошибка.

    Пример ответа:
    {"exists": false, "relation": null}
    """

    exists: bool
    relation: TagRelationResponse | None = None


class TagRelationCountResponse(BaseModel):
    tag_id: str
    count: int


class DefaultStatusResponse(BaseModel):
    object_id: str
    status: TagRelationStatus


class StatusChangeResponse(BaseModel):
    """Результат массового изменения статуса."""

    affected: int = Field(..., description="Сколько строк изменено")


# ============================================================================
# MIGRATION SCHEMAS
# ============================================================================


class TagMigrationRequest(BaseModel):
    target_tag_id: str = Field(..., min_length=1, max_length=64)


class TagMigrationResponse(BaseModel):
    """
    Итог слияния тегов.

    Пример ответа:
    {
        "source_tag_id": "python3",
        "target_tag_id": "python",
        "migrated": 2,
        "dropped": 1,
        "removed": 3
    }
    """

    source_tag_id: str
    target_tag_id: str
    migrated: int
    dropped: int
    removed: int

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {
        "field": "target_tag_id",
        "message": "String should have at least 1 character"
    }
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Коды:
    - VALIDATION_ERROR: ошибка валидации
    - DATABASE_ERROR: ошибка хранилища (StorageError)
    """

    code: str = Field(..., description="Код ошибки (VALIDATION_ERROR, DATABASE_ERROR)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "DATABASE_ERROR",
            "message": "Ошибка базы данных",
            "details": null
        }
    }
    """

    error: ErrorBody
