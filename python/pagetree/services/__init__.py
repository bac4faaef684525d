"""Business logic services.

This module contains service-layer functions that implement business logic.
Services are called by route handlers and orchestrate database operations.
"""

from pagetree.services.content_nodes import (
    create_node,
    delete_node,
    get_breadcrumbs,
    get_children,
    get_node,
    get_node_by_slug,
    get_tree,
    list_nodes,
    move_node,
    update_node,
)
from pagetree.services.publication import ALL_STATUSES, PUBLISHED_ONLY, PublicationFilter

__all__ = [
    "create_node",
    "update_node",
    "move_node",
    "delete_node",
    "get_node",
    "get_node_by_slug",
    "get_children",
    "get_breadcrumbs",
    "get_tree",
    "list_nodes",
    "PublicationFilter",
    "PUBLISHED_ONLY",
    "ALL_STATUSES",
]
