"""Tagging service: attach tags to content objects without duplicates."""

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.context import RequestContext
from ..models import TagRelation, TagRelationStatus
from ..repositories import ContentObjectLookup, TagRelationRecord, TagRelationRepository


class TagRelationService:
    """
    Сервис привязки тегов к объектам.

    Бизнес-правило: у пары (tag_id, object_id) не больше одной связи.
    Поэтому существующая связь (даже deleted) включается заново,
    а новая создаётся только если связи ещё нет (upsert).
    """

    def __init__(
        self,
        db: AsyncSession,
        context: RequestContext | None = None,
        content_lookup: ContentObjectLookup | None = None,
    ):
        self.db = db
        self.relation_repo = TagRelationRepository(
            db, context=context, content_lookup=content_lookup
        )

    async def tag_object(self, object_id: str, tag_ids: Sequence[str]) -> list[TagRelationRecord]:
        """
        Привязать теги к объекту.

        Args:
            object_id: ID объекта (канонический или короткий)
            tag_ids: Теги для привязки (повторы игнорируются)

        Returns:
            Текущие связи объекта (available + hidden)

        Raises:
            ValueError: Пустой object_id или tag_id

        Статус новых и повторно включённых связей берётся из
        default_status_for_object: у скрытого/удалённого объекта связи скрыты.
        """
        self._validate(object_id, tag_ids)

        default_status = await self.relation_repo.default_status_for_object(object_id)
        canonical_id = self.relation_repo.context.to_canonical(object_id)

        existing_ids: list[int] = []
        new_relations: list[TagRelation] = []
        for tag_id in dict.fromkeys(tag_ids):
            relation, exists = await self.relation_repo.get_relation(object_id, tag_id)
            if exists:
                existing_ids.append(relation.id)
            else:
                new_relations.append(
                    TagRelation(tag_id=tag_id, object_id=canonical_id, status=default_status)
                )

        if existing_ids:
            await self.relation_repo.enable_by_ids(
                existing_ids, hide=default_status == TagRelationStatus.HIDDEN
            )
        if new_relations:
            await self.relation_repo.add_relations(new_relations)

        return await self.relation_repo.list_by_object(object_id)

    async def replace_object_tags(
        self, object_id: str, tag_ids: Sequence[str]
    ) -> list[TagRelationRecord]:
        """
        Сделать набор тегов объекта равным tag_ids.

        Связи с тегами, которых нет в tag_ids, помечаются deleted;
        остальные привязываются через tag_object().
        """
        self._validate(object_id, tag_ids)

        wanted = set(tag_ids)
        current = await self.relation_repo.list_by_object(object_id)
        stale_ids = [relation.id for relation in current if relation.tag_id not in wanted]
        if stale_ids:
            await self.relation_repo.remove_by_ids(stale_ids)

        if not tag_ids:
            return await self.relation_repo.list_by_object(object_id)
        return await self.tag_object(object_id, tag_ids)

    def _validate(self, object_id: str, tag_ids: Sequence[str]) -> None:
        if not object_id or not object_id.strip():
            raise ValueError("Object id cannot be empty")
        if any(not tag_id or not tag_id.strip() for tag_id in tag_ids):
            raise ValueError("Tag id cannot be empty")
