"""Content object model (the visibility columns the tagging core reads)."""

import enum

from sqlalchemy import Boolean, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class ContentObjectStatus(str, enum.Enum):
    """Lifecycle status of a content object."""

    AVAILABLE = "available"
    CLOSED = "closed"
    DELETED = "deleted"


class ContentObject(Base, TimestampMixin):
    """A taggable content object (post, question)."""

    __tablename__ = "content_objects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # canonical id
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[ContentObjectStatus] = mapped_column(
        SQLEnum(ContentObjectStatus, native_enum=False),
        default=ContentObjectStatus.AVAILABLE,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ContentObject(id='{self.id}', status={self.status.value}, hidden={self.is_hidden})>"
