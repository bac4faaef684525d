"""SQLAlchemy ORM models for pagetree.

Defines the content node table using SQLAlchemy 2.x declarative patterns.
Column types are the portable SQLAlchemy ones so the same metadata runs on
PostgreSQL (deployments, Alembic) and SQLite (tests).
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Enums
# =============================================================================


class ContentStatus(str, PyEnum):
    """Publication states of a content node.

    States:
        draft: Being written, not visible
        scheduled: Waiting for its publish time, not yet visible
        published: Visible to readers
        archived: Withdrawn, no longer visible
    """

    draft = "draft"
    scheduled = "scheduled"
    published = "published"
    archived = "archived"


# =============================================================================
# Models
# =============================================================================


class ContentNode(Base):
    """A node in a collection's content hierarchy.

    parent_id is a plain identifier, not a foreign key: referential integrity
    is checked when the pointer is written, and children are found by
    querying on parent_id rather than through an owned collection.
    """

    __tablename__ = "content_nodes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    collection_id: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    status: Mapped[ContentStatus] = mapped_column(
        Enum(
            ContentStatus,
            name="content_status_enum",
            native_enum=False,
            length=16,
            validate_strings=True,
        ),
        default=ContentStatus.draft,
        server_default=ContentStatus.draft.value,
        nullable=False,
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("collection_id", "slug", name="uix_content_nodes_collection_slug"),
        CheckConstraint(
            "parent_id IS NULL OR parent_id <> id",
            name="ck_content_nodes_parent_nonself",
        ),
        CheckConstraint(
            "length(collection_id) BETWEEN 1 AND 100",
            name="ck_content_nodes_collection_id_length",
        ),
        CheckConstraint(
            "length(slug) BETWEEN 1 AND 200",
            name="ck_content_nodes_slug_length",
        ),
        CheckConstraint(
            "status IN ('draft', 'scheduled', 'published', 'archived')",
            name="ck_content_nodes_status",
        ),
        Index("idx_content_nodes_collection_parent", "collection_id", "parent_id"),
        Index("idx_content_nodes_parent", "parent_id"),
    )

    def __repr__(self) -> str:
        return f"<ContentNode {self.id} slug={self.slug!r} parent={self.parent_id}>"
