"""Tests for ancestor walks, the cycle guard and corruption detection.

Corrupt hierarchies (loops, overlong chains, dangling parents) cannot be
produced through the services, so they are arranged with direct inserts.
"""

from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from pagetree.config import clear_settings_cache
from pagetree.db.node_store import NodeStore
from pagetree.errors import ApiErrorCode, HierarchyCorruptError, SelfParentError
from pagetree.services import content_nodes
from pagetree.services.ancestry import collect_ancestry, walk_to_root, would_cycle
from tests.factories import create_test_chain, create_test_node, set_parent


class _NoReadStore:
    """Store stand-in that fails the test on any lookup."""

    def get_by_id(self, node_id):
        raise AssertionError(f"unexpected store read of {node_id}")


class TestWalkToRoot:
    """Tests for the shared walk primitive."""

    def test_visits_start_then_ancestors(self, db_session: Session):
        chain = create_test_chain(db_session, 4)
        visited = []

        stopped = walk_to_root(
            NodeStore(db_session), chain[-1], lambda n: visited.append(n.id) or False, 100
        )

        assert stopped is False
        assert visited == list(reversed(chain))

    def test_visitor_can_stop_the_walk(self, db_session: Session):
        chain = create_test_chain(db_session, 4)

        stopped = walk_to_root(NodeStore(db_session), chain[-1], lambda n: n.id == chain[1], 100)

        assert stopped is True

    def test_none_start_visits_nothing(self):
        assert walk_to_root(_NoReadStore(), None, lambda n: True, 10) is False


class TestWouldCycle:
    """Tests for the cycle guard."""

    def test_self_parent_raises_without_reads(self):
        """Self-parenting is rejected before the store is consulted."""
        node_id = uuid4()

        with pytest.raises(SelfParentError):
            would_cycle(_NoReadStore(), node_id, node_id, 10)

    def test_descendant_parent_cycles(self, db_session: Session):
        chain = create_test_chain(db_session, 3)
        assert would_cycle(NodeStore(db_session), chain[0], chain[2], 100) is True

    def test_unrelated_parent_does_not_cycle(self, db_session: Session):
        chain = create_test_chain(db_session, 3)
        other = create_test_node(db_session, "Other")

        assert would_cycle(NodeStore(db_session), chain[0], other, 100) is False

    def test_ancestor_parent_does_not_cycle(self, db_session: Session):
        """Moving a node further up its own chain is fine."""
        chain = create_test_chain(db_session, 3)
        assert would_cycle(NodeStore(db_session), chain[2], chain[0], 100) is False


class TestCorruptHierarchies:
    """Tests for loops and overlong chains written outside the services."""

    def test_breadcrumbs_detect_loop(self, db_session: Session):
        """A two-node loop fails loudly instead of spinning."""
        a = create_test_node(db_session, "A")
        b = create_test_node(db_session, "B", parent_id=a)
        set_parent(db_session, a, b)

        with pytest.raises(HierarchyCorruptError) as exc_info:
            content_nodes.get_breadcrumbs(db_session, a)

        assert exc_info.value.code == ApiErrorCode.E_HIERARCHY_CORRUPT
        assert exc_info.value.status_code == 500

    def test_move_into_loop_detects_corruption(self, db_session: Session):
        """The cycle guard reports corruption above the candidate parent."""
        a = create_test_node(db_session, "A")
        b = create_test_node(db_session, "B", parent_id=a)
        set_parent(db_session, a, b)
        c = create_test_node(db_session, "C")

        with pytest.raises(HierarchyCorruptError):
            content_nodes.move_node(db_session, c, a)

    def test_step_ceiling(self, db_session: Session, monkeypatch):
        """Chains longer than ANCESTOR_WALK_MAX_STEPS are reported as corrupt."""
        monkeypatch.setenv("ANCESTOR_WALK_MAX_STEPS", "3")
        clear_settings_cache()
        chain = create_test_chain(db_session, 5)

        assert len(content_nodes.get_breadcrumbs(db_session, chain[2])) == 3
        with pytest.raises(HierarchyCorruptError):
            content_nodes.get_breadcrumbs(db_session, chain[4])

    def test_dangling_parent_ends_the_walk(self, db_session: Session):
        """A parent pointer to a vanished row ends the path at the orphan."""
        orphan = create_test_node(db_session, "Orphan", parent_id=uuid4())

        path = collect_ancestry(NodeStore(db_session), orphan, 100)

        assert [n.id for n in path] == [orphan]
