"""
Тесты для Service Layer (Бизнес-логика).

Проверяем:
- Слияние тегов: перенос объектов, дубликаты, сохранение статусов, счётчики
- Атомарность слияния (откат при ошибке на любом шаге)
- Привязку тегов без дубликатов (upsert) и статус по умолчанию
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import OBJ_A, OBJ_B, OBJ_C, OBJ_D
from tagrel.core.context import RequestContext
from tagrel.core.exceptions import StorageError
from tagrel.core.short_id import ShortIdCodec
from tagrel.models import TagRelation, TagRelationStatus
from tagrel.repositories import TagRelationRepository
from tagrel.services import MigrationResult, TagMergeService, TagRelationService

AVAILABLE = TagRelationStatus.AVAILABLE
HIDDEN = TagRelationStatus.HIDDEN
DELETED = TagRelationStatus.DELETED


def _by_object(rows):
    return {row.object_id: row.status for row in rows}


def _storage_failure(operation):
    return StorageError(operation, OperationalError("statement", {}, Exception("disk I/O error")))


# ============================================================================
# TAG MERGE SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_migrate_tag_objects(test_db, relation_repo, make_relations):
    """Test: объекты source переезжают на target, дубликат отбрасывается, source пуст."""
    inserted = await relation_repo.add_relations(
        make_relations(
            ("S", OBJ_A, AVAILABLE),
            ("S", OBJ_B, HIDDEN),
            ("S", OBJ_C, AVAILABLE),
            ("T", OBJ_B, HIDDEN),
        )
    )
    await test_db.commit()
    target_b_id = inserted[3].id

    service = TagMergeService(test_db)
    result = await service.migrate_tag_objects("S", "T")

    assert result == MigrationResult(
        source_tag_id="S", target_tag_id="T", migrated=2, dropped=1, removed=3
    )

    target_rows = await service.relation_repo.get_rows_by_tag("T")
    assert _by_object(target_rows) == {OBJ_A: AVAILABLE, OBJ_B: HIDDEN, OBJ_C: AVAILABLE}
    assert len(target_rows) == 3

    # Существующая связь target не тронута: тот же ID, тот же статус
    b_relation, _ = await relation_repo.get_relation(OBJ_B, "T")
    assert b_relation.id == target_b_id
    assert b_relation.status == HIDDEN

    assert await service.relation_repo.get_rows_by_tag("S") == []


@pytest.mark.asyncio
async def test_migrate_keeps_target_status(test_db, relation_repo, make_relations):
    """Test: если объект уже есть у target, статус target остаётся прежним."""
    await relation_repo.add_relations(
        make_relations(("S", OBJ_A, HIDDEN), ("T", OBJ_A, AVAILABLE))
    )
    await test_db.commit()

    result = await TagMergeService(test_db).migrate_tag_objects("S", "T")

    assert (result.migrated, result.dropped, result.removed) == (0, 1, 1)
    record, _ = await relation_repo.get_relation(OBJ_A, "T")
    assert record.status == AVAILABLE


@pytest.mark.asyncio
async def test_migrate_carries_every_status(test_db, relation_repo, make_relations):
    """Test: новые связи target получают статус исходной связи, включая deleted."""
    await relation_repo.add_relations(
        make_relations(
            ("S", OBJ_A, AVAILABLE),
            ("S", OBJ_B, HIDDEN),
            ("S", OBJ_C, DELETED),
        )
    )
    await test_db.commit()

    service = TagMergeService(test_db)
    await service.migrate_tag_objects("S", "T")

    target_rows = await service.relation_repo.get_rows_by_tag("T")
    assert _by_object(target_rows) == {OBJ_A: AVAILABLE, OBJ_B: HIDDEN, OBJ_C: DELETED}


@pytest.mark.asyncio
async def test_migrate_deleted_target_relation_blocks_object(test_db, relation_repo, make_relations):
    """Test: deleted связь target тоже считается "объект уже есть" - source связь отбрасывается."""
    await relation_repo.add_relations(
        make_relations(("S", OBJ_A, AVAILABLE), ("T", OBJ_A, DELETED))
    )
    await test_db.commit()

    result = await TagMergeService(test_db).migrate_tag_objects("S", "T")

    assert (result.migrated, result.dropped, result.removed) == (0, 1, 1)
    record, exists = await relation_repo.get_relation(OBJ_A, "T")
    assert exists is True
    assert record.status == DELETED
    assert await relation_repo.list_by_object(OBJ_A) == []


@pytest.mark.asyncio
async def test_migrate_empty_source(test_db, relation_repo, make_relations):
    """Test: у source нет связей - ничего не меняется, счётчики нулевые."""
    await relation_repo.add_relations(make_relations(("T", OBJ_A, AVAILABLE)))
    await test_db.commit()

    service = TagMergeService(test_db)
    result = await service.migrate_tag_objects("S", "T")

    assert (result.migrated, result.dropped, result.removed) == (0, 0, 0)
    assert len(await service.relation_repo.get_rows_by_tag("T")) == 1


@pytest.mark.asyncio
async def test_migrate_to_new_tag(test_db, relation_repo, make_relations):
    """Test: target без связей - все объекты source переезжают."""
    await relation_repo.add_relations(
        make_relations(("S", OBJ_A, AVAILABLE), ("S", OBJ_D, AVAILABLE))
    )
    await test_db.commit()

    result = await TagMergeService(test_db).migrate_tag_objects("S", "T")

    assert (result.migrated, result.dropped, result.removed) == (2, 0, 2)
    assert await relation_repo.count_by_tag("T") == 2
    assert await relation_repo.count_by_tag("S") == 0


@pytest.mark.asyncio
async def test_migrate_same_tag_rejected(test_db, relation_repo, make_relations):
    """Test: слияние тега с самим собой - ValueError, данные не тронуты."""
    await relation_repo.add_relations(make_relations(("S", OBJ_A, AVAILABLE)))
    await test_db.commit()

    with pytest.raises(ValueError, match="Cannot merge tag with itself"):
        await TagMergeService(test_db).migrate_tag_objects("S", "S")

    assert await relation_repo.count_by_tag("S") == 1


@pytest.mark.asyncio
async def test_migrate_rolls_back_when_delete_fails(
    test_db, relation_repo, make_relations, monkeypatch
):
    """Test: ошибка на шаге удаления source - вставка в target тоже откатывается."""
    await relation_repo.add_relations(
        make_relations(("S", OBJ_A, AVAILABLE), ("S", OBJ_B, HIDDEN))
    )
    await test_db.commit()

    service = TagMergeService(test_db)

    async def failing_delete(tag_id):
        raise _storage_failure("delete_by_tag")

    monkeypatch.setattr(service.relation_repo, "delete_by_tag", failing_delete)

    with pytest.raises(StorageError) as exc_info:
        await service.migrate_tag_objects("S", "T")

    assert exc_info.value.operation == "delete_by_tag"

    repo = TagRelationRepository(test_db)
    assert _by_object(await repo.get_rows_by_tag("S")) == {OBJ_A: AVAILABLE, OBJ_B: HIDDEN}
    assert await repo.get_rows_by_tag("T") == []


@pytest.mark.asyncio
async def test_migrate_rolls_back_when_insert_fails(
    test_db, relation_repo, make_relations, monkeypatch
):
    """Test: ошибка после вставки новых связей - ни одна из них не остаётся."""
    await relation_repo.add_relations(
        make_relations(
            ("S", OBJ_A, AVAILABLE),
            ("S", OBJ_C, AVAILABLE),
            ("T", OBJ_B, AVAILABLE),
        )
    )
    await test_db.commit()

    service = TagMergeService(test_db)
    real_insert_rows = service.relation_repo.insert_rows

    async def insert_then_fail(rows, operation="insert_rows"):
        await real_insert_rows(rows, operation=operation)
        raise _storage_failure(operation)

    monkeypatch.setattr(service.relation_repo, "insert_rows", insert_then_fail)

    with pytest.raises(StorageError) as exc_info:
        await service.migrate_tag_objects("S", "T")

    assert exc_info.value.operation == "migrate_tag_objects"

    repo = TagRelationRepository(test_db)
    assert _by_object(await repo.get_rows_by_tag("S")) == {OBJ_A: AVAILABLE, OBJ_C: AVAILABLE}
    assert _by_object(await repo.get_rows_by_tag("T")) == {OBJ_B: AVAILABLE}


@pytest.mark.asyncio
async def test_migrate_inside_outer_transaction_rolls_back_own_work_only(
    test_db, relation_repo, make_relations, monkeypatch
):
    """Test: внутри уже открытой транзакции слияние откатывает только свой SAVEPOINT."""
    await relation_repo.add_relations(
        make_relations(("S", OBJ_A, AVAILABLE), ("other", OBJ_D, AVAILABLE))
    )
    await test_db.commit()

    # Работа вызывающего кода в той же транзакции
    assert await relation_repo.hide_by_object(OBJ_D) == 1
    assert test_db.in_transaction()

    service = TagMergeService(test_db)

    async def failing_delete(tag_id):
        raise _storage_failure("delete_by_tag")

    monkeypatch.setattr(service.relation_repo, "delete_by_tag", failing_delete)

    with pytest.raises(StorageError):
        await service.migrate_tag_objects("S", "T")

    assert test_db.in_transaction()
    assert await relation_repo.count_by_tag("S") == 1
    assert await relation_repo.get_relation(OBJ_A, "T") == (None, False)

    record, _ = await relation_repo.get_relation(OBJ_D, "other")
    assert record.status == HIDDEN


@pytest.mark.asyncio
async def test_migrate_inside_outer_transaction_success(test_db, relation_repo, make_relations):
    """Test: успешное слияние внутри открытой транзакции видно после commit."""
    await relation_repo.add_relations(make_relations(("S", OBJ_A, AVAILABLE)))

    result = await TagMergeService(test_db).migrate_tag_objects("S", "T")
    await test_db.commit()

    assert result.migrated == 1
    assert await relation_repo.count_by_tag("T") == 1
    assert await relation_repo.count_by_tag("S") == 0


# ============================================================================
# TAG RELATION SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_tag_object_creates_relations(test_db, content_objects):
    """Test: новые связи видимого объекта - available."""
    service = TagRelationService(test_db)

    records = await service.tag_object(OBJ_A, ["python", "backend"])
    await test_db.commit()

    assert [(r.tag_id, r.status) for r in records] == [
        ("python", AVAILABLE),
        ("backend", AVAILABLE),
    ]


@pytest.mark.asyncio
async def test_tag_object_hidden_object(test_db, content_objects):
    """Test: у скрытого объекта новые связи создаются hidden."""
    service = TagRelationService(test_db)

    records = await service.tag_object(OBJ_B, ["python"])

    assert [r.status for r in records] == [HIDDEN]


@pytest.mark.asyncio
async def test_tag_object_reenables_existing_relation(
    test_db, relation_repo, make_relations, content_objects
):
    """Test: повторная привязка включает старую связь, а не создаёт вторую."""
    inserted = await relation_repo.add_relations(make_relations(("python", OBJ_A, DELETED)))
    await test_db.commit()

    service = TagRelationService(test_db)
    records = await service.tag_object(OBJ_A, ["python"])
    await test_db.commit()

    assert len(records) == 1
    assert records[0].id == inserted[0].id
    assert records[0].status == AVAILABLE


@pytest.mark.asyncio
async def test_tag_object_reenabled_hidden_for_deleted_object(
    test_db, relation_repo, make_relations, content_objects
):
    """Test: у удалённого объекта повторно включённая связь - hidden."""
    await relation_repo.add_relations(make_relations(("python", OBJ_C, DELETED)))
    await test_db.commit()

    records = await TagRelationService(test_db).tag_object(OBJ_C, ["python"])

    assert [r.status for r in records] == [HIDDEN]


@pytest.mark.asyncio
async def test_tag_object_ignores_repeated_tags(test_db, content_objects):
    """Test: повторяющиеся tag_id в запросе дают одну связь."""
    service = TagRelationService(test_db)

    records = await service.tag_object(OBJ_A, ["python", "python", "api"])

    assert [r.tag_id for r in records] == ["python", "api"]


@pytest.mark.asyncio
async def test_tag_object_short_id(test_db, content_objects):
    """Test: короткий ID на входе, канонический в БД, короткий в ответе."""
    short_a = ShortIdCodec().encode(OBJ_A)
    service = TagRelationService(test_db, context=RequestContext(short_id_enabled=True))

    records = await service.tag_object(short_a, ["python"])
    await test_db.commit()

    assert records[0].object_id == short_a
    stored = await test_db.scalar(
        select(TagRelation.object_id).where(TagRelation.id == records[0].id)
    )
    assert stored == OBJ_A


@pytest.mark.asyncio
async def test_tag_object_validation(test_db):
    """Test: валидация - пустой object_id или tag_id."""
    service = TagRelationService(test_db)

    with pytest.raises(ValueError, match="Object id cannot be empty"):
        await service.tag_object("", ["python"])

    with pytest.raises(ValueError, match="Tag id cannot be empty"):
        await service.tag_object(OBJ_A, ["python", "  "])


@pytest.mark.asyncio
async def test_replace_object_tags(test_db, relation_repo, make_relations, content_objects):
    """Test: замена набора тегов - лишние связи deleted, недостающие созданы."""
    await relation_repo.add_relations(
        make_relations(("python", OBJ_A, AVAILABLE), ("legacy", OBJ_A, AVAILABLE))
    )
    await test_db.commit()

    service = TagRelationService(test_db)
    records = await service.replace_object_tags(OBJ_A, ["python", "api"])
    await test_db.commit()

    assert sorted(r.tag_id for r in records) == ["api", "python"]
    legacy, exists = await relation_repo.get_relation(OBJ_A, "legacy")
    assert exists is True
    assert legacy.status == DELETED


@pytest.mark.asyncio
async def test_replace_object_tags_with_empty_list(
    test_db, relation_repo, make_relations, content_objects
):
    """Test: пустой набор тегов - все связи объекта deleted."""
    await relation_repo.add_relations(
        make_relations(("python", OBJ_A, AVAILABLE), ("api", OBJ_A, HIDDEN))
    )
    await test_db.commit()

    records = await TagRelationService(test_db).replace_object_tags(OBJ_A, [])

    assert records == []
    assert await relation_repo.list_by_object(OBJ_A) == []
