"""Node store: durable, key-addressed access to content nodes.

The store is the only place that issues queries against content_nodes.
It offers point lookups by id and slug, range lookups by parent, and a
write transaction that holds the collection's write lock.

Locking:
- PostgreSQL: pg_advisory_xact_lock keyed by a 64-bit hash of the
  collection id, released automatically at commit/rollback.
- Other dialects (SQLite in tests): a process-local threading.Lock per
  collection, released only after the transaction has committed or
  rolled back.

Every select uses populate_existing so that rows read after the lock is
taken reflect committed state, not objects cached in the identity map.
"""

import hashlib
import threading
import weakref
from collections.abc import Collection, Generator, Iterable
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select, text
from sqlalchemy.orm import Session

from pagetree.db.models import ContentNode, ContentStatus, utcnow
from pagetree.db.session import store_errors, transaction
from pagetree.logging import get_logger

logger = get_logger(__name__)

SORTABLE_COLUMNS = {
    "created_at": ContentNode.created_at,
    "updated_at": ContentNode.updated_at,
    "published_at": ContentNode.published_at,
    "title": ContentNode.title,
}

# Entries live only while some writer holds or waits on the lock
_local_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_local_locks_guard = threading.Lock()


def advisory_lock_key(collection_id: str) -> int:
    """Map a collection id onto the signed bigint space of pg advisory locks."""
    digest = hashlib.blake2b(collection_id.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def _local_lock(collection_id: str) -> threading.Lock:
    with _local_locks_guard:
        lock = _local_locks.get(collection_id)
        if lock is None:
            lock = _local_locks[collection_id] = threading.Lock()
        return lock


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class NodeStore:
    """Content node persistence bound to one database session."""

    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    def _fetch_all(self, stmt: Select) -> list[ContentNode]:
        with store_errors():
            return list(self.db.scalars(stmt.execution_options(populate_existing=True)))

    def _fetch_one(self, stmt: Select) -> ContentNode | None:
        with store_errors():
            return self.db.scalars(
                stmt.execution_options(populate_existing=True)
            ).one_or_none()

    @staticmethod
    def _visible(stmt: Select, statuses: Collection[ContentStatus] | None) -> Select:
        if statuses is None:
            return stmt
        return stmt.where(ContentNode.status.in_(list(statuses)))

    # -------------------------------------------------------------------------
    # Point lookups
    # -------------------------------------------------------------------------

    def get_by_id(self, node_id: UUID) -> ContentNode | None:
        return self._fetch_one(select(ContentNode).where(ContentNode.id == node_id))

    def find_by_slug(
        self, collection_id: str, slug: str, exclude_id: UUID | None = None
    ) -> ContentNode | None:
        """Find the node holding slug in a collection, optionally ignoring one node."""
        stmt = select(ContentNode).where(
            ContentNode.collection_id == collection_id,
            ContentNode.slug == slug,
        )
        if exclude_id is not None:
            stmt = stmt.where(ContentNode.id != exclude_id)
        return self._fetch_one(stmt)

    # -------------------------------------------------------------------------
    # Range lookups
    # -------------------------------------------------------------------------

    def get_by_parent(
        self, parent_id: UUID, statuses: Collection[ContentStatus] | None = None
    ) -> list[ContentNode]:
        """Direct children of a node, ordered by title."""
        stmt = select(ContentNode).where(ContentNode.parent_id == parent_id)
        stmt = self._visible(stmt, statuses).order_by(ContentNode.title, ContentNode.id)
        return self._fetch_all(stmt)

    def get_by_parents(
        self,
        collection_id: str,
        parent_ids: Iterable[UUID],
        statuses: Collection[ContentStatus] | None = None,
    ) -> list[ContentNode]:
        """Direct children of several nodes at once, ordered by title."""
        ids = list(parent_ids)
        if not ids:
            return []
        stmt = select(ContentNode).where(
            ContentNode.collection_id == collection_id,
            ContentNode.parent_id.in_(ids),
        )
        stmt = self._visible(stmt, statuses).order_by(ContentNode.title, ContentNode.id)
        return self._fetch_all(stmt)

    def list_roots(
        self, collection_id: str, statuses: Collection[ContentStatus] | None = None
    ) -> list[ContentNode]:
        stmt = select(ContentNode).where(
            ContentNode.collection_id == collection_id,
            ContentNode.parent_id.is_(None),
        )
        stmt = self._visible(stmt, statuses).order_by(ContentNode.title, ContentNode.id)
        return self._fetch_all(stmt)

    def count_children(self, parent_id: UUID) -> int:
        with store_errors():
            return self.db.scalar(
                select(func.count()).select_from(ContentNode).where(
                    ContentNode.parent_id == parent_id
                )
            )

    def count_children_by_parent(
        self,
        parent_ids: Iterable[UUID],
        statuses: Collection[ContentStatus] | None = None,
    ) -> dict[UUID, int]:
        """Child counts keyed by parent id. Parents without children are absent."""
        ids = list(parent_ids)
        if not ids:
            return {}
        stmt = (
            select(ContentNode.parent_id, func.count())
            .where(ContentNode.parent_id.in_(ids))
            .group_by(ContentNode.parent_id)
        )
        stmt = self._visible(stmt, statuses)
        with store_errors():
            return {row[0]: row[1] for row in self.db.execute(stmt)}

    def query(
        self,
        collection_id: str,
        *,
        status: ContentStatus | None = None,
        parent_id: UUID | None = None,
        roots_only: bool = False,
        search: str | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ContentNode], int]:
        """Filtered, sorted page of a collection's nodes plus the total match count."""
        conditions: list[Any] = [ContentNode.collection_id == collection_id]
        if status is not None:
            conditions.append(ContentNode.status == status)
        if roots_only:
            conditions.append(ContentNode.parent_id.is_(None))
        elif parent_id is not None:
            conditions.append(ContentNode.parent_id == parent_id)
        if search:
            pattern = f"%{_escape_like(search)}%"
            conditions.append(
                or_(
                    ContentNode.title.ilike(pattern, escape="\\"),
                    ContentNode.content.ilike(pattern, escape="\\"),
                )
            )

        column = SORTABLE_COLUMNS[sort_by]
        order = column.desc() if descending else column.asc()
        stmt = (
            select(ContentNode)
            .where(*conditions)
            .order_by(order, ContentNode.id)
            .offset(offset)
            .limit(limit)
        )
        with store_errors():
            total = self.db.scalar(
                select(func.count()).select_from(ContentNode).where(*conditions)
            )
        return self._fetch_all(stmt), total

    # -------------------------------------------------------------------------
    # Writes (call inside write_transaction)
    # -------------------------------------------------------------------------

    def insert(self, node: ContentNode) -> ContentNode:
        with store_errors():
            self.db.add(node)
            self.db.flush()
        return node

    def update(self, node: ContentNode, changes: dict[str, Any]) -> ContentNode:
        for field, value in changes.items():
            setattr(node, field, value)
        node.updated_at = utcnow()
        with store_errors():
            self.db.flush()
        return node

    def delete(self, node_id: UUID) -> None:
        with store_errors():
            self.db.execute(delete(ContentNode).where(ContentNode.id == node_id))

    @contextmanager
    def write_transaction(self, collection_id: str) -> Generator[None, None, None]:
        """Serialize writers of one collection for the duration of a transaction.

        Reads issued inside the block observe everything committed by
        earlier holders of the lock.
        """
        # End any read transaction opened before the lock so the guarded
        # reads start from committed state.
        with store_errors():
            self.db.commit()

        if self.dialect == "postgresql":
            with transaction(self.db):
                self.db.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": advisory_lock_key(collection_id)},
                )
                yield
            return

        lock = _local_lock(collection_id)
        lock.acquire()
        try:
            with transaction(self.db):
                yield
        finally:
            lock.release()
