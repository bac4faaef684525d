"""Content node routes.

Routes are transport-only:
- Parse path/query/body
- Call exactly one service function
- Return success(...) or raise ApiError

No domain logic or raw DB access in routes. Callers are authorized
upstream; these routes make no permission checks.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from pagetree.api.deps import get_db, get_publication_filter
from pagetree.db.models import ContentStatus
from pagetree.responses import success_response
from pagetree.schemas.node import (
    CreateNodeRequest,
    MoveNodeRequest,
    NodeSortField,
    SortOrder,
    UpdateNodeRequest,
)
from pagetree.services import content_nodes as nodes_service
from pagetree.services.publication import PublicationFilter

router = APIRouter()


# =============================================================================
# Collection-scoped routes
# =============================================================================


@router.post("/collections/{collection_id}/nodes", status_code=201)
def create_node(
    collection_id: str,
    body: CreateNodeRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a content node in a collection, optionally under a parent."""
    result = nodes_service.create_node(
        db,
        collection_id,
        body.title,
        parent_id=body.parent_id,
        status=body.status,
        content=body.content,
    )
    return success_response(result)


@router.get("/collections/{collection_id}/nodes")
def list_nodes(
    collection_id: str,
    db: Annotated[Session, Depends(get_db)],
    status: Annotated[ContentStatus | None, Query(description="Filter by status")] = None,
    parent_id: Annotated[UUID | None, Query(description="Only children of this node")] = None,
    roots_only: Annotated[bool, Query(description="Only root nodes")] = False,
    search: Annotated[
        str | None, Query(max_length=200, description="Title/content substring")
    ] = None,
    sort_by: NodeSortField = "created_at",
    sort_order: SortOrder = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, description="Page size (clamped to 100)")] = None,
) -> dict:
    """List a collection's nodes with filters, sorting and pagination."""
    result = nodes_service.list_nodes(
        db,
        collection_id,
        status=status,
        parent_id=parent_id,
        roots_only=roots_only,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return success_response(result)


@router.get("/collections/{collection_id}/nodes/by-slug/{slug}")
def get_node_by_slug(
    collection_id: str,
    slug: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a node by its slug within a collection."""
    result = nodes_service.get_node_by_slug(db, collection_id, slug)
    return success_response(result)


@router.get("/collections/{collection_id}/tree")
def get_tree(
    collection_id: str,
    db: Annotated[Session, Depends(get_db)],
    publication_filter: Annotated[PublicationFilter, Depends(get_publication_filter)],
    max_depth: Annotated[int | None, Query(ge=0, description="Levels below the roots")] = None,
) -> dict:
    """Get the visible forest of a collection, bounded to max_depth levels.

    Nodes at the depth ceiling with unexpanded children carry
    has_more_children = true.
    """
    result = nodes_service.get_tree(
        db, collection_id, max_depth=max_depth, publication_filter=publication_filter
    )
    return success_response(result)


# =============================================================================
# Node routes
# =============================================================================


@router.get("/nodes/{node_id}")
def get_node(
    node_id: UUID,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a single node by ID."""
    result = nodes_service.get_node(db, node_id)
    return success_response(result)


@router.patch("/nodes/{node_id}")
def update_node(
    node_id: UUID,
    body: UpdateNodeRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Partially update a node.

    Send only the fields to change; "parent_id": null moves the node to root.
    """
    result = nodes_service.update_node(db, node_id, body)
    return success_response(result)


@router.post("/nodes/{node_id}/move")
def move_node(
    node_id: UUID,
    body: MoveNodeRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Move a node under a new parent, or to root with parent_id null."""
    result = nodes_service.move_node(db, node_id, body.parent_id)
    return success_response(result)


@router.delete("/nodes/{node_id}", status_code=204)
def delete_node(
    node_id: UUID,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a node. Fails with E_HAS_CHILDREN while it has children."""
    nodes_service.delete_node(db, node_id)
    return Response(status_code=204)


@router.get("/nodes/{node_id}/children")
def get_children(
    node_id: UUID,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get the direct children of a node, ordered by title."""
    result = nodes_service.get_children(db, node_id)
    return success_response(result)


@router.get("/nodes/{node_id}/breadcrumbs")
def get_breadcrumbs(
    node_id: UUID,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get the root-first path to a node (the node itself last)."""
    result = nodes_service.get_breadcrumbs(db, node_id)
    return success_response(result)
