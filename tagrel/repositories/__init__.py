"""Repository layer for data access."""

from .base import BaseRepository
from .content_object import ContentObjectLookup, ContentObjectRepository, ContentObjectVisibility
from .records import TagRelationRecord
from .tag_relation import TagRelationRepository

__all__ = [
    "BaseRepository",
    "ContentObjectLookup",
    "ContentObjectRepository",
    "ContentObjectVisibility",
    "TagRelationRecord",
    "TagRelationRepository",
]
