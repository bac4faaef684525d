"""Ancestor walks over the parent_id chain.

walk_to_root is the single traversal used by both the cycle guard and
breadcrumb assembly, so the two always agree on what "the ancestors of X"
means. Each step is one point lookup in the node store.

The walk refuses to loop: a node seen twice or a chain longer than
max_steps raises HierarchyCorruptError. Normal writes cannot produce either
state, so hitting one means the table was edited outside this service.
"""

from collections.abc import Callable
from uuid import UUID

from pagetree.db.models import ContentNode
from pagetree.db.node_store import NodeStore
from pagetree.errors import HierarchyCorruptError, SelfParentError
from pagetree.logging import get_logger

logger = get_logger(__name__)

# Return True to stop the walk at the visited node.
Visitor = Callable[[ContentNode], bool]


def walk_to_root(
    store: NodeStore,
    start_id: UUID | None,
    visit: Visitor,
    max_steps: int,
) -> bool:
    """Follow parent_id upward from start_id, calling visit on each node.

    The walk ends when visit returns True, when a node has no parent, or
    when a parent pointer does not resolve.

    Args:
        store: Node store used for the point lookups.
        start_id: First node to visit. None means there is nothing to walk.
        visit: Per-node callback; returning True stops the walk.
        max_steps: Maximum number of nodes to visit.

    Returns:
        True if visit stopped the walk, False if it ran off the top.

    Raises:
        HierarchyCorruptError: On a revisited node or an overlong chain.
    """
    seen: set[UUID] = set()
    current_id = start_id

    while current_id is not None:
        if current_id in seen:
            logger.error("ancestor_walk_loop", start_id=str(start_id), node_id=str(current_id))
            raise HierarchyCorruptError(
                start_id, f"Parent chain of {start_id} loops at {current_id}"
            )
        if len(seen) >= max_steps:
            logger.error("ancestor_walk_too_deep", start_id=str(start_id), max_steps=max_steps)
            raise HierarchyCorruptError(
                start_id, f"Parent chain of {start_id} exceeds {max_steps} steps"
            )
        seen.add(current_id)

        node = store.get_by_id(current_id)
        if node is None:
            # Dangling pointer: the referenced parent was removed out of band
            logger.warning(
                "ancestor_walk_dangling", start_id=str(start_id), node_id=str(current_id)
            )
            return False
        if visit(node):
            return True
        current_id = node.parent_id

    return False


def would_cycle(
    store: NodeStore,
    node_id: UUID,
    candidate_parent_id: UUID,
    max_steps: int,
) -> bool:
    """Whether making candidate_parent_id the parent of node_id creates a cycle.

    Walks up from the candidate parent; meeting node_id on the way means
    node_id is already an ancestor of the candidate.

    Raises:
        SelfParentError: If candidate_parent_id is node_id (no lookups are made).
        HierarchyCorruptError: If the candidate's own ancestry is corrupt.
    """
    if candidate_parent_id == node_id:
        raise SelfParentError(node_id)

    return walk_to_root(
        store,
        candidate_parent_id,
        lambda ancestor: ancestor.id == node_id,
        max_steps,
    )


def collect_ancestry(store: NodeStore, node_id: UUID, max_steps: int) -> list[ContentNode]:
    """Return node_id and its ancestors, root first.

    Returns an empty list if node_id itself does not resolve.
    """
    path: list[ContentNode] = []

    def prepend(node: ContentNode) -> bool:
        path.insert(0, node)
        return False

    walk_to_root(store, node_id, prepend, max_steps)
    return path
