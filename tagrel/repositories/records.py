"""Presentation records returned by the tag relation repository."""

from dataclasses import dataclass
from datetime import datetime

from ..core.context import RequestContext
from ..models import TagRelation, TagRelationStatus


@dataclass(frozen=True)
class TagRelationRecord:
    """
    Snapshot of a tag relation as shown to the caller.

    ``object_id`` is in short form when the request context asks for it;
    ORM rows are never rewritten, so presentation cannot leak into the
    unit of work.
    """

    id: int
    tag_id: str
    object_id: str
    status: TagRelationStatus
    created_at: datetime


def to_record(row: TagRelation, context: RequestContext) -> TagRelationRecord:
    return TagRelationRecord(
        id=row.id,
        tag_id=row.tag_id,
        object_id=context.present(row.object_id),
        status=row.status,
        created_at=row.created_at,
    )
