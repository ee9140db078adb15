"""Tag relation repository: status-aware storage of tag <-> object links."""

from collections.abc import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.context import RequestContext
from ..models import TagRelation, TagRelationStatus
from .base import BaseRepository
from .content_object import ContentObjectLookup, ContentObjectRepository
from .records import TagRelationRecord, to_record

# Statuses that make up the "currently meaningful" relation set of an object
LIVE_STATUSES = (TagRelationStatus.AVAILABLE, TagRelationStatus.HIDDEN)


class TagRelationRepository(BaseRepository[TagRelation]):
    """
    Репозиторий связей тег <-> объект.

    Жизненный цикл связи (status):

        available --hide_by_object--> hidden --show_by_object--> available
        {available, hidden} --remove_by_object--> deleted
        {любой} --recover_by_object--> available

    Ни одна операция жизненного цикла не удаляет строки физически:
    "удаление" - это status=deleted. Физически строки удаляет только
    delete_by_tag (используется при слиянии тегов).

    object_id от клиента всегда переводится в каноническую форму,
    а в ответах - в короткую, если это включено в RequestContext.
    """

    def __init__(
        self,
        db: AsyncSession,
        context: RequestContext | None = None,
        content_lookup: ContentObjectLookup | None = None,
    ):
        super().__init__(TagRelation, db)
        self.context = context or RequestContext()
        self.content_lookup = content_lookup or ContentObjectRepository(db)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_relations(self, relations: Sequence[TagRelation]) -> list[TagRelationRecord]:
        """
        Insert a batch of new relations.

        Object ids are stored in canonical form. The batch is one unit:
        a failing insert raises StorageError and nothing is recovered here.

        Returns:
            Inserted relations as records (short object ids if enabled)
        """
        for relation in relations:
            relation.object_id = self.context.to_canonical(relation.object_id)

        await self.insert_rows(relations, operation="add_relations")
        return [to_record(relation, self.context) for relation in relations]

    async def remove_by_object(self, object_id: str) -> int:
        """
        Пометить ВСЕ связи объекта как deleted (независимо от статуса).

        Идемпотентно: повторный вызов ничего не меняет.

        SQL эквивалент:
            UPDATE tag_relations SET status = 'deleted' WHERE object_id = {object_id};
        """
        return await self._set_status_by_object(
            "remove_by_object", object_id, TagRelationStatus.DELETED
        )

    async def recover_by_object(self, object_id: str) -> int:
        """
        Вернуть ВСЕ связи объекта в available - безусловно, в том числе из deleted.

        Это не точная инверсия hide/remove: восстановление перезаписывает любой статус.
        """
        return await self._set_status_by_object(
            "recover_by_object", object_id, TagRelationStatus.AVAILABLE
        )

    async def hide_by_object(self, object_id: str) -> int:
        """
        available -> hidden. Связи в hidden/deleted не трогаем.

        SQL эквивалент:
            UPDATE tag_relations SET status = 'hidden'
            WHERE object_id = {object_id} AND status = 'available';
        """
        return await self._set_status_by_object(
            "hide_by_object",
            object_id,
            TagRelationStatus.HIDDEN,
            only_from=TagRelationStatus.AVAILABLE,
        )

    async def show_by_object(self, object_id: str) -> int:
        """hidden -> available. Symmetric to hide_by_object."""
        return await self._set_status_by_object(
            "show_by_object",
            object_id,
            TagRelationStatus.AVAILABLE,
            only_from=TagRelationStatus.HIDDEN,
        )

    async def remove_by_ids(self, ids: Sequence[int]) -> int:
        """Mark relations with the given ids as deleted."""
        return await self._set_status_by_ids("remove_by_ids", ids, TagRelationStatus.DELETED)

    async def enable_by_ids(self, ids: Sequence[int], hide: bool = False) -> int:
        """Set relations with the given ids to hidden (hide=True) or available."""
        status = TagRelationStatus.HIDDEN if hide else TagRelationStatus.AVAILABLE
        return await self._set_status_by_ids("enable_by_ids", ids, status)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_relation(
        self, object_id: str, tag_id: str
    ) -> tuple[TagRelationRecord | None, bool]:
        """
        Получить связь объекта с тегом независимо от статуса.

        Returns:
            (record, True) если связь есть, (None, False) если нет.
            Отсутствие - нормальный результат, не ошибка.
        """
        result = await self._execute(
            "get_relation",
            select(TagRelation)
            .where(
                TagRelation.object_id == self.context.to_canonical(object_id),
                TagRelation.tag_id == tag_id,
            )
            .order_by(TagRelation.id)
            .limit(1),
        )
        relation = result.scalars().first()
        if relation is None:
            return None, False
        return to_record(relation, self.context), True

    async def list_by_object(self, object_id: str) -> list[TagRelationRecord]:
        """
        Все available и hidden связи объекта (deleted исключены).

        SQL эквивалент:
            SELECT * FROM tag_relations
            WHERE object_id = {object_id} AND status IN ('available', 'hidden')
            ORDER BY id;
        """
        result = await self._execute(
            "list_by_object",
            select(TagRelation)
            .where(
                TagRelation.object_id == self.context.to_canonical(object_id),
                TagRelation.status.in_(LIVE_STATUSES),
            )
            .order_by(TagRelation.id),
        )
        return [to_record(relation, self.context) for relation in result.scalars().all()]

    async def list_by_objects(self, object_ids: Sequence[str]) -> list[TagRelationRecord]:
        """
        Batched read for display: only available relations, hidden ones never surface.

        The caller's list is left untouched.
        """
        if not object_ids:
            return []

        canonical_ids = [self.context.to_canonical(object_id) for object_id in object_ids]
        result = await self._execute(
            "list_by_objects",
            select(TagRelation)
            .where(
                TagRelation.object_id.in_(canonical_ids),
                TagRelation.status == TagRelationStatus.AVAILABLE,
            )
            .order_by(TagRelation.id),
        )
        return [to_record(relation, self.context) for relation in result.scalars().all()]

    async def count_by_tag(self, tag_id: str) -> int:
        """
        Количество available связей тега.

        SQL эквивалент:
            SELECT COUNT(*) FROM tag_relations
            WHERE tag_id = {tag_id} AND status = 'available';
        """
        result = await self._execute(
            "count_by_tag",
            select(func.count())
            .select_from(TagRelation)
            .where(
                TagRelation.tag_id == tag_id,
                TagRelation.status == TagRelationStatus.AVAILABLE,
            ),
        )
        return result.scalar_one()

    async def default_status_for_object(self, object_id: str) -> TagRelationStatus:
        """
        Status a new relation to this object should start with.

        Hidden or deleted objects get hidden relations; everything else,
        including objects the lookup does not know, gets available ones.
        """
        visibility = await self.content_lookup.get_visibility(
            self.context.to_canonical(object_id)
        )
        if visibility is not None and (visibility.is_hidden or visibility.is_deleted):
            return TagRelationStatus.HIDDEN
        return TagRelationStatus.AVAILABLE

    # ------------------------------------------------------------------
    # Transactional primitives (canonical ids, ORM rows)
    # ------------------------------------------------------------------

    async def get_rows_by_tag(self, tag_id: str, lock: bool = False) -> list[TagRelation]:
        """
        All relations of a tag, any status.

        Args:
            tag_id: Tag to read
            lock: SELECT ... FOR UPDATE (ignored by engines without row locks)
        """
        statement = select(TagRelation).where(TagRelation.tag_id == tag_id).order_by(TagRelation.id)
        if lock:
            statement = statement.with_for_update()
        result = await self._execute("get_rows_by_tag", statement)
        return list(result.scalars().all())

    async def insert_rows(
        self, rows: Sequence[TagRelation], operation: str = "insert_rows"
    ) -> None:
        """Insert rows as they are (object ids must already be canonical)."""
        if not rows:
            return
        self.db.add_all(rows)
        await self._flush(operation)

    async def delete_by_tag(self, tag_id: str) -> int:
        """
        Физически удалить все связи тега.

        SQL эквивалент:
            DELETE FROM tag_relations WHERE tag_id = {tag_id};
        """
        result = await self._execute(
            "delete_by_tag", delete(TagRelation).where(TagRelation.tag_id == tag_id)
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _set_status_by_object(
        self,
        operation: str,
        object_id: str,
        status: TagRelationStatus,
        only_from: TagRelationStatus | None = None,
    ) -> int:
        statement = (
            update(TagRelation)
            .where(TagRelation.object_id == self.context.to_canonical(object_id))
            .values(status=status)
        )
        if only_from is not None:
            statement = statement.where(TagRelation.status == only_from)
        result = await self._execute(operation, statement)
        return result.rowcount

    async def _set_status_by_ids(
        self, operation: str, ids: Sequence[int], status: TagRelationStatus
    ) -> int:
        if not ids:
            return 0
        result = await self._execute(
            operation,
            update(TagRelation).where(TagRelation.id.in_(list(ids))).values(status=status),
        )
        return result.rowcount
