"""Tag relation model."""

import enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class TagRelationStatus(str, enum.Enum):
    """Visibility status of a tag relation."""

    AVAILABLE = "available"
    HIDDEN = "hidden"
    DELETED = "deleted"  # soft delete, recoverable


class TagRelation(Base, TimestampMixin):
    """Links one tag to one content object."""

    __tablename__ = "tag_relations"
    __table_args__ = (
        UniqueConstraint("tag_id", "object_id", name="uq_tag_relation_tag_object"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tag_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    object_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # canonical
    status: Mapped[TagRelationStatus] = mapped_column(
        SQLEnum(TagRelationStatus, native_enum=False),
        default=TagRelationStatus.AVAILABLE,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<TagRelation(id={self.id}, tag_id='{self.tag_id}', "
            f"object_id='{self.object_id}', status={self.status.value})>"
        )
