"""SQLAlchemy models for the tag relation service."""

from .base import Base, TimestampMixin
from .content_object import ContentObject, ContentObjectStatus
from .tag_relation import TagRelation, TagRelationStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "TagRelation",
    "TagRelationStatus",
    "ContentObject",
    "ContentObjectStatus",
]
