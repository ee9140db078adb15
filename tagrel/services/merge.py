"""Tag merge: move one tag's object associations onto another tag."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.context import RequestContext
from ..core.database import transactional
from ..core.exceptions import StorageError
from ..core.logging import get_logger
from ..models import TagRelation
from ..repositories import TagRelationRepository

logger = get_logger(__name__)


@dataclass
class MigrationResult:
    """Outcome of a tag migration."""

    source_tag_id: str
    target_tag_id: str
    migrated: int = 0  # new relations created on the target tag
    dropped: int = 0  # source relations whose object the target already had
    removed: int = 0  # source relations deleted


class TagMergeService:
    """
    Сервис слияния тегов.

    Все объекты исходного тега переезжают на целевой тег одной транзакцией:
    либо всё, либо ничего.
    """

    def __init__(
        self,
        db: AsyncSession,
        context: RequestContext | None = None,
        isolation_level: str | None = None,
    ):
        self.db = db
        self.relation_repo = TagRelationRepository(db, context=context)
        self.isolation_level = isolation_level or settings.MERGE_ISOLATION_LEVEL or None

    async def migrate_tag_objects(self, source_tag_id: str, target_tag_id: str) -> MigrationResult:
        """
        Перенести объекты source-тега на target-тег.

        Шаги (одна транзакция):
        1. Прочитать все связи source (любой статус), с блокировкой строк
        2. Прочитать все связи target, собрать множество object_id
        3. Для объектов, которых нет у target, создать новую связь с target,
           сохранив status исходной связи
        4. Вставить новые связи (если есть)
        5. Удалить ВСЕ связи source, включая дубликаты, которые не переносились

        Args:
            source_tag_id: Тег, который уходит
            target_tag_id: Тег, который остаётся

        Returns:
            MigrationResult со счётчиками

        Raises:
            ValueError: Если source и target совпадают
            StorageError: Любая ошибка БД; транзакция откатывается целиком,
                связи source остаются как были
        """
        if source_tag_id == target_tag_id:
            raise ValueError("Cannot merge tag with itself")

        result = MigrationResult(source_tag_id=source_tag_id, target_tag_id=target_tag_id)
        log_extra = {"source_tag_id": source_tag_id, "target_tag_id": target_tag_id}

        try:
            async with transactional(self.db, isolation_level=self.isolation_level):
                source_rows = await self.relation_repo.get_rows_by_tag(source_tag_id, lock=True)
                target_rows = await self.relation_repo.get_rows_by_tag(target_tag_id, lock=True)

                covered = {row.object_id for row in target_rows}
                new_rows = []
                for row in source_rows:
                    if row.object_id in covered:
                        result.dropped += 1
                        continue
                    covered.add(row.object_id)
                    new_rows.append(
                        TagRelation(
                            tag_id=target_tag_id,
                            object_id=row.object_id,
                            status=row.status,
                        )
                    )

                if new_rows:
                    await self.relation_repo.insert_rows(new_rows, operation="migrate_tag_objects")
                result.migrated = len(new_rows)
                result.removed = await self.relation_repo.delete_by_tag(source_tag_id)
        except StorageError as exc:
            logger.error(
                "Tag migration rolled back",
                extra={**log_extra, "operation": exc.operation},
            )
            raise

        logger.info(
            "Tag migration completed",
            extra={
                **log_extra,
                "migrated": result.migrated,
                "dropped": result.dropped,
                "removed": result.removed,
            },
        )
        return result
