"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from pagetree.schemas.node import (
    BreadcrumbOut,
    CreateNodeRequest,
    MoveNodeRequest,
    NodeListOut,
    NodeOut,
    PageMeta,
    TreeNodeOut,
    TreeOut,
    UpdateNodeRequest,
)

__all__ = [
    "CreateNodeRequest",
    "UpdateNodeRequest",
    "MoveNodeRequest",
    "NodeOut",
    "NodeListOut",
    "PageMeta",
    "BreadcrumbOut",
    "TreeNodeOut",
    "TreeOut",
]
