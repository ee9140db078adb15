"""Content object lookup used to derive default tag relation status."""

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ContentObject, ContentObjectStatus
from .base import BaseRepository


@dataclass(frozen=True)
class ContentObjectVisibility:
    """Visibility state of a content object."""

    is_hidden: bool
    is_deleted: bool


class ContentObjectLookup(Protocol):
    """Anything that can report a content object's visibility by canonical id."""

    async def get_visibility(self, object_id: str) -> ContentObjectVisibility | None: ...


class ContentObjectRepository(BaseRepository[ContentObject]):
    """SQL-backed ContentObjectLookup over the content_objects table."""

    def __init__(self, db: AsyncSession):
        super().__init__(ContentObject, db)

    async def get_visibility(self, object_id: str) -> ContentObjectVisibility | None:
        """
        Read only the visibility columns of an object.

        Returns:
            Visibility, or None when the object does not exist

        SQL эквивалент:
            SELECT is_hidden, status FROM content_objects WHERE id = {object_id};
        """
        result = await self._execute(
            "get_visibility",
            select(ContentObject.is_hidden, ContentObject.status).where(
                ContentObject.id == object_id
            ),
        )
        row = result.one_or_none()
        if row is None:
            return None
        return ContentObjectVisibility(
            is_hidden=row.is_hidden,
            is_deleted=row.status == ContentObjectStatus.DELETED,
        )
