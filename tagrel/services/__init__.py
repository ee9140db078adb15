"""Service layer with business logic."""

from .merge import MigrationResult, TagMergeService
from .tag_relation import TagRelationService

__all__ = [
    "TagMergeService",
    "MigrationResult",
    "TagRelationService",
]
