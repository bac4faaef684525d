"""Content node Pydantic schemas.

Contains request and response models for node, tree and breadcrumb endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagetree.db.models import ContentStatus

NodeSortField = Literal["created_at", "updated_at", "published_at", "title"]
SortOrder = Literal["asc", "desc"]

__all__ = [
    "CreateNodeRequest",
    "UpdateNodeRequest",
    "MoveNodeRequest",
    "NodeOut",
    "BreadcrumbOut",
    "TreeNodeOut",
    "TreeOut",
    "PageMeta",
    "NodeListOut",
    "NodeSortField",
    "SortOrder",
]


def _strip_title(value: str | None) -> str:
    if value is None:
        raise ValueError("title may be omitted but not null")
    value = value.strip()
    if not value:
        raise ValueError("Title must not be blank")
    return value


# =============================================================================
# Request Schemas
# =============================================================================


class CreateNodeRequest(BaseModel):
    """Request body for creating a content node."""

    title: str = Field(..., min_length=1, max_length=200, description="Node title (1-200 chars)")
    parent_id: UUID | None = Field(default=None, description="Parent node ID; omit for a root")
    status: ContentStatus = Field(default=ContentStatus.draft)
    content: str | None = Field(default=None, description="Opaque node body")

    normalize_title = field_validator("title")(_strip_title)


class UpdateNodeRequest(BaseModel):
    """Partial update for a content node.

    Only fields present in the request are applied. An explicit
    ``"parent_id": null`` moves the node to the root of its collection.
    """

    title: str | None = Field(default=None, min_length=1, max_length=200)
    parent_id: UUID | None = None
    status: ContentStatus | None = None
    content: str | None = None

    normalize_title = field_validator("title")(_strip_title)

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value: ContentStatus | None) -> ContentStatus | None:
        if value is None:
            raise ValueError("status may be omitted but not null")
        return value

    @property
    def parent_id_provided(self) -> bool:
        return "parent_id" in self.model_fields_set


class MoveNodeRequest(BaseModel):
    """Request body for moving a node under a new parent (null for root)."""

    parent_id: UUID | None = Field(..., description="New parent node ID, or null for root")


# =============================================================================
# Response Schemas
# =============================================================================


class NodeOut(BaseModel):
    """Response schema for a content node."""

    id: UUID
    collection_id: str
    title: str
    slug: str
    parent_id: UUID | None
    status: ContentStatus
    content: str | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    children_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class BreadcrumbOut(BaseModel):
    """One entry of a root-first breadcrumb path."""

    id: UUID
    title: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class TreeNodeOut(BaseModel):
    """A node inside an assembled tree.

    has_more_children is True only for nodes at the depth ceiling whose
    children were not expanded.
    """

    id: UUID
    title: str
    slug: str
    parent_id: UUID | None
    status: ContentStatus
    published_at: datetime | None
    children: list[TreeNodeOut] = Field(default_factory=list)
    has_more_children: bool = False

    model_config = ConfigDict(from_attributes=True)


class TreeOut(BaseModel):
    """A collection's forest, bounded to max_depth levels below the roots."""

    collection_id: str
    max_depth: int
    nodes: list[TreeNodeOut]


class PageMeta(BaseModel):
    """Pagination metadata for list responses."""

    total: int
    page: int
    limit: int
    total_pages: int


class NodeListOut(BaseModel):
    """A page of content nodes."""

    nodes: list[NodeOut]
    page: PageMeta
