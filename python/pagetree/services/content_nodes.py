"""Content node hierarchy service layer.

All hierarchy business logic lives here.
Routes may not contain domain logic or raw DB access - they must call these functions.

Mutations (create, update, move, delete) run inside NodeStore.write_transaction,
which serializes writers of one collection. Every guard that feeds a write
(slug uniqueness, parent existence, cycle check, child presence) is evaluated
after the lock is taken, against committed state, so two concurrent
re-parentings can never jointly install a cycle.

Reads take no lock and may be momentarily stale.
"""

import math
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pagetree.config import get_settings
from pagetree.db.models import ContentNode, ContentStatus, utcnow
from pagetree.db.node_store import NodeStore
from pagetree.errors import (
    ApiErrorCode,
    CircularReferenceError,
    HasChildrenError,
    InvalidParentError,
    InvalidRequestError,
    NodeNotFoundError,
    SelfParentError,
    SlugConflictError,
)
from pagetree.logging import get_logger
from pagetree.schemas.node import (
    BreadcrumbOut,
    NodeListOut,
    NodeOut,
    NodeSortField,
    PageMeta,
    SortOrder,
    TreeNodeOut,
    TreeOut,
    UpdateNodeRequest,
)
from pagetree.services.ancestry import collect_ancestry, would_cycle
from pagetree.services.publication import PUBLISHED_ONLY, PublicationFilter
from pagetree.services.slugs import reserve_slug, slugify

logger = get_logger(__name__)

SLUG_CONSTRAINT = "uix_content_nodes_collection_slug"


def _is_slug_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return SLUG_CONSTRAINT in message or "content_nodes.slug" in message


def _node_out(node: ContentNode, children_count: int = 0) -> NodeOut:
    return NodeOut.model_validate(node).model_copy(update={"children_count": children_count})


def _normalize_collection_id(collection_id: str) -> str:
    collection_id = collection_id.strip()
    if not collection_id or len(collection_id) > 100:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, "Collection ID must be 1-100 characters"
        )
    return collection_id


def _get_existing(store: NodeStore, node_id: UUID) -> ContentNode:
    node = store.get_by_id(node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    return node


def _require_parent(store: NodeStore, collection_id: str, parent_id: UUID) -> ContentNode:
    """Load a candidate parent; nodes of other collections count as missing."""
    parent = store.get_by_id(parent_id)
    if parent is None or parent.collection_id != collection_id:
        raise InvalidParentError(parent_id)
    return parent


def _insert_or_conflict(store: NodeStore, node: ContentNode) -> None:
    try:
        store.insert(node)
    except IntegrityError as exc:
        if _is_slug_violation(exc):
            raise SlugConflictError(node.slug) from exc
        raise


# =============================================================================
# Mutations
# =============================================================================


def create_node(
    db: Session,
    collection_id: str,
    title: str,
    parent_id: UUID | None = None,
    status: ContentStatus = ContentStatus.draft,
    content: str | None = None,
) -> NodeOut:
    """Create a content node, optionally under an existing parent.

    A new node cannot be anyone's ancestor yet, so no cycle check is made.

    Args:
        db: Database session.
        collection_id: Collection the node belongs to.
        title: Node title (trimmed); the slug is derived from it.
        parent_id: Parent node in the same collection, or None for a root.
        status: Initial status. Creating as published stamps published_at.
        content: Opaque node body.

    Returns:
        The created node including its resolved slug.

    Raises:
        InvalidRequestError: If the collection id or title is unusable.
        SlugConflictError: If the derived slug is taken in the collection.
        InvalidParentError: If parent_id does not exist in the collection.
    """
    collection_id = _normalize_collection_id(collection_id)
    title = title.strip()
    slug = slugify(title)

    store = NodeStore(db)
    with store.write_transaction(collection_id):
        reserve_slug(store, collection_id, slug)
        if parent_id is not None:
            _require_parent(store, collection_id, parent_id)

        node = ContentNode(
            id=uuid4(),
            collection_id=collection_id,
            title=title,
            slug=slug,
            parent_id=parent_id,
            status=status,
            content=content,
            published_at=utcnow() if status == ContentStatus.published else None,
        )
        _insert_or_conflict(store, node)

    logger.info(
        "content_node_created",
        node_id=str(node.id),
        collection_id=collection_id,
        parent_id=str(parent_id) if parent_id else None,
        slug=slug,
    )
    return _node_out(node)


def update_node(db: Session, node_id: UUID, patch: UpdateNodeRequest) -> NodeOut:
    """Apply a partial update to a content node.

    Only fields present in the patch are considered. Title changes re-derive
    the slug; parent changes are validated for self-parenting, existence and
    cycles; moving into published stamps published_at the first time only.

    Args:
        db: Database session.
        node_id: Node to update.
        patch: Fields to change.

    Returns:
        The updated node.

    Raises:
        NodeNotFoundError: If the node does not exist.
        SlugConflictError: If the new title's slug is taken.
        SelfParentError: If the node is made its own parent.
        InvalidParentError: If the new parent does not exist in the collection.
        CircularReferenceError: If the new parent is a descendant of the node.
    """
    settings = get_settings()
    store = NodeStore(db)
    fields = patch.model_fields_set

    if patch.parent_id_provided and patch.parent_id == node_id:
        raise SelfParentError(node_id)

    collection_id = _get_existing(store, node_id).collection_id

    with store.write_transaction(collection_id):
        # Re-read under the lock; the node may have changed or vanished
        node = _get_existing(store, node_id)
        changes: dict = {}
        previous_parent_id = node.parent_id

        if "title" in fields and patch.title != node.title:
            slug = slugify(patch.title)
            reserve_slug(store, collection_id, slug, exclude_id=node.id)
            changes["title"] = patch.title
            changes["slug"] = slug

        if patch.parent_id_provided and patch.parent_id != node.parent_id:
            if patch.parent_id is not None:
                _require_parent(store, collection_id, patch.parent_id)
                if would_cycle(
                    store, node.id, patch.parent_id, settings.ancestor_walk_max_steps
                ):
                    logger.warning(
                        "content_node_cycle_rejected",
                        node_id=str(node.id),
                        parent_id=str(patch.parent_id),
                    )
                    raise CircularReferenceError(node.id, patch.parent_id)
            changes["parent_id"] = patch.parent_id

        if "status" in fields and patch.status != node.status:
            changes["status"] = patch.status
        if patch.status == ContentStatus.published and node.published_at is None:
            changes["published_at"] = utcnow()

        if "content" in fields and patch.content != node.content:
            changes["content"] = patch.content

        if changes:
            try:
                store.update(node, changes)
            except IntegrityError as exc:
                if _is_slug_violation(exc):
                    raise SlugConflictError(changes.get("slug", node.slug)) from exc
                raise

        children_count = store.count_children(node.id)

    if "parent_id" in changes:
        logger.info(
            "content_node_moved",
            node_id=str(node.id),
            from_parent_id=str(previous_parent_id) if previous_parent_id else None,
            to_parent_id=str(node.parent_id) if node.parent_id else None,
        )
    if changes:
        logger.info("content_node_updated", node_id=str(node.id), fields=sorted(changes))

    return _node_out(node, children_count)


def move_node(db: Session, node_id: UUID, parent_id: UUID | None) -> NodeOut:
    """Re-parent a node; parent_id None makes it a root.

    Same guards and transaction as update_node with only parent_id set.
    """
    return update_node(db, node_id, UpdateNodeRequest(parent_id=parent_id))


def delete_node(db: Session, node_id: UUID) -> None:
    """Delete a childless content node.

    The child check and the delete share one locked transaction, so a
    concurrent create under this node either lands first (and blocks the
    delete) or sees the parent gone.

    Raises:
        NodeNotFoundError: If the node does not exist.
        HasChildrenError: If any node still has this node as its parent.
    """
    store = NodeStore(db)
    collection_id = _get_existing(store, node_id).collection_id

    with store.write_transaction(collection_id):
        node = _get_existing(store, node_id)
        child_count = store.count_children(node.id)
        if child_count > 0:
            raise HasChildrenError(node.id, child_count)
        store.delete(node.id)

    logger.info("content_node_deleted", node_id=str(node_id), collection_id=collection_id)


# =============================================================================
# Reads
# =============================================================================


def get_node(db: Session, node_id: UUID) -> NodeOut:
    """Get one node with its direct child count."""
    store = NodeStore(db)
    node = _get_existing(store, node_id)
    return _node_out(node, store.count_children(node.id))


def get_node_by_slug(db: Session, collection_id: str, slug: str) -> NodeOut:
    """Get one node by its slug within a collection."""
    collection_id = _normalize_collection_id(collection_id)
    store = NodeStore(db)
    node = store.find_by_slug(collection_id, slug)
    if node is None:
        raise NodeNotFoundError(slug)
    return _node_out(node, store.count_children(node.id))


def get_children(db: Session, node_id: UUID) -> list[NodeOut]:
    """Direct children of a node, ordered by title. Not recursive."""
    store = NodeStore(db)
    _get_existing(store, node_id)
    children = store.get_by_parent(node_id)
    counts = store.count_children_by_parent(child.id for child in children)
    return [_node_out(child, counts.get(child.id, 0)) for child in children]


def get_breadcrumbs(db: Session, node_id: UUID) -> list[BreadcrumbOut]:
    """Root-first path from the node's root down to the node itself.

    Raises:
        NodeNotFoundError: If node_id does not resolve.
        HierarchyCorruptError: If the parent chain loops or is too long.
    """
    store = NodeStore(db)
    path = collect_ancestry(store, node_id, get_settings().ancestor_walk_max_steps)
    if not path:
        raise NodeNotFoundError(node_id)
    return [BreadcrumbOut.model_validate(node) for node in path]


def get_tree(
    db: Session,
    collection_id: str,
    max_depth: int | None = None,
    publication_filter: PublicationFilter = PUBLISHED_ONLY,
) -> TreeOut:
    """Assemble a collection's forest down to max_depth levels below the roots.

    Assembly is breadth-first with one store query per level. Nodes on the
    last expanded level get no children; they are flagged has_more_children
    when they have any child at all, whatever its status.

    Args:
        db: Database session.
        collection_id: Collection to assemble.
        max_depth: Levels below the roots to expand (0 = roots only).
            Defaults to TREE_DEFAULT_MAX_DEPTH.
        publication_filter: Visibility predicate applied at every level.

    Raises:
        InvalidRequestError: If max_depth is negative or above TREE_MAX_DEPTH_LIMIT,
            or the collection id is blank.
    """
    collection_id = _normalize_collection_id(collection_id)
    settings = get_settings()
    if max_depth is None:
        max_depth = settings.tree_default_max_depth
    if max_depth < 0 or max_depth > settings.tree_max_depth_limit:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST,
            f"max_depth must be between 0 and {settings.tree_max_depth_limit}",
        )

    store = NodeStore(db)
    statuses = publication_filter.statuses
    roots = [n for n in store.list_roots(collection_id, statuses) if publication_filter(n)]

    assembled: dict[UUID, TreeNodeOut] = {n.id: TreeNodeOut.model_validate(n) for n in roots}
    frontier = [n.id for n in roots]
    depth = 0

    while frontier:
        if depth >= max_depth:
            counts = store.count_children_by_parent(frontier)
            for node_id in frontier:
                assembled[node_id].has_more_children = counts.get(node_id, 0) > 0
            break

        next_frontier: list[UUID] = []
        for child in store.get_by_parents(collection_id, frontier, statuses):
            if not publication_filter(child) or child.id in assembled:
                continue
            out = TreeNodeOut.model_validate(child)
            assembled[child.parent_id].children.append(out)
            assembled[child.id] = out
            next_frontier.append(child.id)

        frontier = next_frontier
        depth += 1

    return TreeOut(
        collection_id=collection_id,
        max_depth=max_depth,
        nodes=[assembled[n.id] for n in roots],
    )


def list_nodes(
    db: Session,
    collection_id: str,
    *,
    status: ContentStatus | None = None,
    parent_id: UUID | None = None,
    roots_only: bool = False,
    search: str | None = None,
    sort_by: NodeSortField = "created_at",
    sort_order: SortOrder = "desc",
    page: int = 1,
    limit: int | None = None,
) -> NodeListOut:
    """List a collection's nodes with filtering, sorting and pagination.

    Args:
        db: Database session.
        collection_id: Collection to list.
        status: Only nodes with this status.
        parent_id: Only direct children of this node.
        roots_only: Only root nodes (takes precedence over parent_id).
        search: Case-insensitive substring of title or content.
        sort_by: Sort column.
        sort_order: "asc" or "desc".
        page: 1-based page number.
        limit: Page size, clamped to MAX_PAGE_LIMIT. Defaults to DEFAULT_PAGE_LIMIT.

    Raises:
        InvalidRequestError: If page or limit is below 1, or the collection id is blank.
    """
    collection_id = _normalize_collection_id(collection_id)
    settings = get_settings()
    if limit is None:
        limit = settings.default_page_limit
    if page < 1 or limit < 1:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "page and limit must be >= 1")
    limit = min(limit, settings.max_page_limit)

    store = NodeStore(db)
    rows, total = store.query(
        collection_id,
        status=status,
        parent_id=parent_id,
        roots_only=roots_only,
        search=search.strip() if search else None,
        sort_by=sort_by,
        descending=sort_order == "desc",
        offset=(page - 1) * limit,
        limit=limit,
    )
    counts = store.count_children_by_parent(row.id for row in rows)

    return NodeListOut(
        nodes=[_node_out(row, counts.get(row.id, 0)) for row in rows],
        page=PageMeta(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        ),
    )
