"""
API endpoints для связей тег <-> объект.

object_id в путях и телах запросов принимается в любой форме
(канонической или короткой); в ответах форма зависит от флага short ID
(настройка SHORT_ID_ENABLED или заголовок X-Short-ID).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from ..models import TagRelation
from ..repositories import TagRelationRepository
from ..services import TagMergeService, TagRelationService
from .dependencies import (
    get_tag_merge_service,
    get_tag_relation_repository,
    get_tag_relation_service,
)
from .errors import ValidationError_
from .schemas import (
    DefaultStatusResponse,
    EnableRelationsRequest,
    ErrorResponse,
    ObjectTagsRequest,
    RelationIdsRequest,
    RelationLookupResponse,
    StatusChangeResponse,
    TagMigrationRequest,
    TagMigrationResponse,
    TagRelationBatchCreate,
    TagRelationCountResponse,
    TagRelationResponse,
)

router = APIRouter(prefix="/tag-relations", tags=["tag-relations"])

# Same bounds as the tag_relations columns
ObjectIdPath = Annotated[
    str, Path(max_length=64, description="ID объекта (канонический или короткий)")
]
TagIdPath = Annotated[str, Path(max_length=64, description="ID тега")]


def _to_response(records) -> list[TagRelationResponse]:
    return [TagRelationResponse.model_validate(record) for record in records]


# ============================================================================
# CREATE
# ============================================================================


@router.post(
    "",
    response_model=list[TagRelationResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Добавить пакет связей",
    responses={500: {"model": ErrorResponse, "description": "Ошибка БД, пакет не вставлен"}},
)
async def add_relations(
    data: TagRelationBatchCreate,
    repo: TagRelationRepository = Depends(get_tag_relation_repository),
) -> list[TagRelationResponse]:
    """
    Вставить связи одним пакетом: либо все, либо ни одной.

    Пример запроса:
    ```json
    {"relations": [{"tag_id": "python", "object_id": "11D"}]}
    ```
    """
    relations = [
        TagRelation(tag_id=item.tag_id, object_id=item.object_id, status=item.status)
        for item in data.relations
    ]
    return _to_response(await repo.add_relations(relations))


@router.post(
    "/objects/{object_id}/tags",
    response_model=list[TagRelationResponse],
    summary="Привязать теги к объекту",
    responses={400: {"model": ErrorResponse, "description": "Некорректные данные"}},
)
async def tag_object(
    object_id: ObjectIdPath,
    data: ObjectTagsRequest,
    service: TagRelationService = Depends(get_tag_relation_service),
) -> list[TagRelationResponse]:
    """Привязать теги без дубликатов; возвращает текущие связи объекта."""
    try:
        return _to_response(await service.tag_object(object_id, data.tag_ids))
    except ValueError as e:
        raise ValidationError_(str(e))


@router.put(
    "/objects/{object_id}/tags",
    response_model=list[TagRelationResponse],
    summary="Заменить набор тегов объекта",
    responses={400: {"model": ErrorResponse, "description": "Некорректные данные"}},
)
async def replace_object_tags(
    object_id: ObjectIdPath,
    data: ObjectTagsRequest,
    service: TagRelationService = Depends(get_tag_relation_service),
) -> list[TagRelationResponse]:
    try:
        return _to_response(await service.replace_object_tags(object_id, data.tag_ids))
    except ValueError as e:
        raise ValidationError_(str(e))


# ============================================================================
# READ
# ============================================================================


@router.get(
    "/objects",
    response_model=list[TagRelationResponse],
    summary="Связи нескольких объектов (только available)",
)
async def list_by_objects(
    object_ids: list[str] = Query(..., description="ID объектов"),
    repo: TagRelationRepository = Depends(get_tag_relation_repository),
) -> list[TagRelationResponse]:
    """
    Пример запроса:
    ```
    GET /tag-relations/objects?object_ids=11D&object_ids=11E
    ```
    """
    return _to_response(await repo.list_by_objects(object_ids))


@router.get(
    "/objects/{object_id}",
    response_model=list[TagRelationResponse],
    summary="Связи объекта (available + hidden)",
)
async def list_by_object(
    object_id: ObjectIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> list[TagRelationResponse]:
    return _to_response(await repo.list_by_object(object_id))


@router.get(
    "/objects/{object_id}/tags/{tag_id}",
    response_model=RelationLookupResponse,
    summary="Найти связь объекта с тегом (любой статус)",
)
async def get_relation(
    object_id: ObjectIdPath,
    tag_id: TagIdPath,
    repo: TagRelationRepository = Depends(get_tag_relation_repository),
) -> RelationLookupResponse:
    """Всегда 200: отсутствие связи - это exists=false, а не 404."""
    record, exists = await repo.get_relation(object_id, tag_id)
    relation = TagRelationResponse.model_validate(record) if exists else None
    return RelationLookupResponse(exists=exists, relation=relation)


@router.get(
    "/objects/{object_id}/default-status",
    response_model=DefaultStatusResponse,
    summary="Статус по умолчанию для новых связей объекта",
)
async def default_status_for_object(
    object_id: ObjectIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> DefaultStatusResponse:
    return DefaultStatusResponse(
        object_id=object_id, status=await repo.default_status_for_object(object_id)
    )


@router.get(
    "/tags/{tag_id}/count",
    response_model=TagRelationCountResponse,
    summary="Количество available связей тега",
)
async def count_by_tag(
    tag_id: TagIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> TagRelationCountResponse:
    return TagRelationCountResponse(tag_id=tag_id, count=await repo.count_by_tag(tag_id))


# ============================================================================
# LIFECYCLE BY OBJECT
# ============================================================================


@router.post(
    "/objects/{object_id}/remove",
    response_model=StatusChangeResponse,
    summary="Пометить все связи объекта как deleted",
)
async def remove_by_object(
    object_id: ObjectIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> StatusChangeResponse:
    return StatusChangeResponse(affected=await repo.remove_by_object(object_id))


@router.post(
    "/objects/{object_id}/recover",
    response_model=StatusChangeResponse,
    summary="Вернуть все связи объекта в available",
)
async def recover_by_object(
    object_id: ObjectIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> StatusChangeResponse:
    return StatusChangeResponse(affected=await repo.recover_by_object(object_id))


@router.post(
    "/objects/{object_id}/hide",
    response_model=StatusChangeResponse,
    summary="Скрыть available связи объекта",
)
async def hide_by_object(
    object_id: ObjectIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> StatusChangeResponse:
    return StatusChangeResponse(affected=await repo.hide_by_object(object_id))


@router.post(
    "/objects/{object_id}/show",
    response_model=StatusChangeResponse,
    summary="Показать hidden связи объекта",
)
async def show_by_object(
    object_id: ObjectIdPath, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> StatusChangeResponse:
    return StatusChangeResponse(affected=await repo.show_by_object(object_id))


# ============================================================================
# LIFECYCLE BY RELATION ID
# ============================================================================


@router.post("/remove", response_model=StatusChangeResponse, summary="Удалить связи по ID")
async def remove_by_ids(
    data: RelationIdsRequest, repo: TagRelationRepository = Depends(get_tag_relation_repository)
) -> StatusChangeResponse:
    return StatusChangeResponse(affected=await repo.remove_by_ids(data.ids))


@router.post("/enable", response_model=StatusChangeResponse, summary="Включить связи по ID")
async def enable_by_ids(
    data: EnableRelationsRequest,
    repo: TagRelationRepository = Depends(get_tag_relation_repository),
) -> StatusChangeResponse:
    """hide=true включает связи в статусе hidden, иначе available."""
    return StatusChangeResponse(affected=await repo.enable_by_ids(data.ids, hide=data.hide))


# ============================================================================
# MIGRATE (MERGE TAGS)
# ============================================================================


@router.post(
    "/tags/{source_tag_id}/migrate",
    response_model=TagMigrationResponse,
    summary="Перенести объекты тега на другой тег",
    description="""
    Все объекты source-тега получают target-тег (без дубликатов, статус
    сохраняется), затем все связи source-тега удаляются.
    Выполняется одной транзакцией.
    """,
    responses={
        400: {"model": ErrorResponse, "description": "source и target совпадают"},
        500: {"model": ErrorResponse, "description": "Ошибка БД, изменения откатены"},
    },
)
async def migrate_tag_objects(
    source_tag_id: TagIdPath,
    data: TagMigrationRequest,
    service: TagMergeService = Depends(get_tag_merge_service),
) -> TagMigrationResponse:
    try:
        result = await service.migrate_tag_objects(source_tag_id, data.target_tag_id)
    except ValueError as e:
        raise ValidationError_(str(e))
    return TagMigrationResponse.model_validate(result)
