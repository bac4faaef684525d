"""Database module for pagetree.

Provides engine creation, session management, transaction helpers, the ORM
model and the node store.
"""

from pagetree.db.engine import create_db_engine, get_engine
from pagetree.db.models import Base, ContentNode, ContentStatus
from pagetree.db.node_store import NodeStore
from pagetree.db.session import get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    # Models
    "Base",
    "ContentNode",
    "ContentStatus",
    # Store
    "NodeStore",
]
