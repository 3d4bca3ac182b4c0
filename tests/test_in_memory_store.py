"""Tests for the in-memory GraphStore."""

from datetime import UTC, datetime

import pytest

from referral_network.models import ReferralRelationship
from referral_network.storage import GraphStore, InMemoryGraphStore, create_store


@pytest.fixture
def tree_store():
    """Alice -> {Bob, Charlie}, Bob -> {David, Eve}."""
    store = InMemoryGraphStore()
    store.add_edge("Alice", "Bob")
    store.add_edge("Alice", "Charlie")
    store.add_edge("Bob", "David")
    store.add_edge("Bob", "Eve")
    return store


class TestUsers:
    """Tests for user creation and lookup."""

    def test_upsert_is_idempotent(self):
        """A second upsert keeps the original node."""
        store = InMemoryGraphStore()
        first = datetime(2024, 1, 1, tzinfo=UTC)
        store.upsert_user("Alice", first)
        store.upsert_user("Alice", datetime(2025, 1, 1, tzinfo=UTC))

        assert store.user_count() == 1
        assert store.get_user("Alice").created_at == first

    def test_unknown_user(self):
        """Lookups on an unknown user are empty."""
        store = InMemoryGraphStore()
        assert store.get_user("ghost") is None
        assert store.user_exists("ghost") is False
        assert store.parent("ghost") is None
        assert store.direct_children("ghost") == []

    def test_get_user_returns_copy(self, tree_store):
        """Mutating a returned node must not leak into the store."""
        node = tree_store.get_user("Alice")
        node.direct_referrals.append("Mallory")
        node.parent = "Mallory"

        assert tree_store.direct_children("Alice") == ["Bob", "Charlie"]
        assert tree_store.parent("Alice") is None

    def test_satisfies_protocol(self):
        """The in-memory store is a GraphStore."""
        assert isinstance(InMemoryGraphStore(), GraphStore)


class TestEdges:
    """Tests for edge insertion and removal."""

    def test_add_edge_creates_endpoints(self):
        """Adding an edge creates both users and sets the parent."""
        store = InMemoryGraphStore()
        store.add_edge("Alice", "Bob")

        assert store.user_exists("Alice")
        assert store.user_exists("Bob")
        assert store.has_edge("Alice", "Bob")
        assert not store.has_edge("Bob", "Alice")
        assert store.parent("Bob") == "Alice"
        assert store.parent("Alice") is None

    def test_children_keep_insertion_order(self, tree_store):
        """Children are listed in insertion order."""
        assert tree_store.direct_children("Alice") == ["Bob", "Charlie"]
        assert tree_store.direct_children("Bob") == ["David", "Eve"]

    def test_re_adding_edge_does_not_duplicate(self, tree_store):
        """Re-adding an edge is a no-op."""
        tree_store.add_edge("Alice", "Bob")

        assert tree_store.direct_children("Alice") == ["Bob", "Charlie"]
        assert len(tree_store.all_edges()) == 4

    def test_edge_timestamp(self):
        """The edge timestamp is applied to new endpoints."""
        store = InMemoryGraphStore()
        when = datetime(2024, 6, 1, tzinfo=UTC)
        store.add_edge("Alice", "Bob", created_at=when)

        assert store.all_edges() == [ReferralRelationship("Alice", "Bob", when)]
        assert store.get_user("Bob").created_at == when

    def test_remove_edge_makes_candidate_root(self, tree_store):
        """The candidate keeps its subtree and loses its parent."""
        tree_store.remove_edge("Alice", "Bob")

        assert not tree_store.has_edge("Alice", "Bob")
        assert tree_store.parent("Bob") is None
        assert tree_store.direct_children("Alice") == ["Charlie"]
        # Bob keeps his own subtree
        assert tree_store.direct_children("Bob") == ["David", "Eve"]

    def test_remove_missing_edge_is_noop(self, tree_store):
        """Removing an absent edge changes nothing."""
        tree_store.remove_edge("Charlie", "Eve")
        assert len(tree_store.all_edges()) == 4

    def test_remove_edge_falls_back_to_remaining_referrer(self):
        """With several referrers the parent is the latest surviving one."""
        store = InMemoryGraphStore()
        store.add_edge("Alice", "Xavier")
        store.add_edge("Bob", "Xavier")
        assert store.parent("Xavier") == "Bob"

        store.remove_edge("Bob", "Xavier")
        assert store.parent("Xavier") == "Alice"

        store.remove_edge("Alice", "Xavier")
        assert store.parent("Xavier") is None


class TestRemoveUser:
    """Tests for user removal."""

    def test_children_become_roots(self, tree_store):
        """Children of a removed user become roots."""
        tree_store.remove_user("Bob")

        assert not tree_store.user_exists("Bob")
        assert tree_store.parent("David") is None
        assert tree_store.parent("Eve") is None
        assert tree_store.direct_children("Alice") == ["Charlie"]
        assert [edge.key for edge in tree_store.all_edges()] == [("Alice", "Charlie")]
        assert tree_store.user_count() == 4

    def test_remove_root(self, tree_store):
        """Removing a root frees its children."""
        tree_store.remove_user("Alice")

        assert tree_store.parent("Bob") is None
        assert tree_store.parent("Charlie") is None
        assert tree_store.all_descendants("Bob") == ["David", "Eve"]

    def test_remove_unknown_is_noop(self, tree_store):
        """Removing an unknown user changes nothing."""
        tree_store.remove_user("ghost")
        assert tree_store.user_count() == 5

    def test_remove_user_with_self_loop(self):
        """A self-loop is removed along with its user."""
        store = InMemoryGraphStore()
        store.add_edge("Alice", "Alice")
        store.remove_user("Alice")

        assert store.user_count() == 0
        assert store.all_edges() == []


class TestTraversal:
    """Tests for descendant enumeration and reachability."""

    def test_all_descendants_pre_order(self, tree_store):
        """Descendants come back in pre-order."""
        assert tree_store.all_descendants("Alice") == ["Bob", "David", "Eve", "Charlie"]
        assert tree_store.all_descendants("Bob") == ["David", "Eve"]

    def test_all_descendants_leaf_and_unknown(self, tree_store):
        """Leaves and unknown users have no descendants."""
        assert tree_store.all_descendants("Eve") == []
        assert tree_store.all_descendants("ghost") == []

    def test_all_descendants_excludes_start_on_cycle(self):
        """The start user is never its own descendant."""
        store = InMemoryGraphStore()
        store.add_edge("A", "B")
        store.add_edge("B", "C")
        store.add_edge("C", "A")

        assert store.all_descendants("A") == ["B", "C"]

    def test_reachable(self, tree_store):
        """Reachability follows edge direction."""
        assert tree_store.reachable("Alice", "Eve")
        assert tree_store.reachable("Bob", "David")
        assert not tree_store.reachable("Eve", "Alice")
        assert not tree_store.reachable("Charlie", "David")

    def test_reachable_zero_length_path(self, tree_store):
        """A user always reaches itself."""
        assert tree_store.reachable("Charlie", "Charlie")

    def test_reachable_unknown_users(self, tree_store):
        """Unknown endpoints are never reachable."""
        assert not tree_store.reachable("ghost", "Alice")
        assert not tree_store.reachable("Alice", "ghost")

    def test_deep_chain_does_not_recurse(self):
        """Traversals must survive chains far deeper than the recursion limit."""
        store = InMemoryGraphStore()
        depth = 5000
        for i in range(depth):
            store.add_edge(f"u{i}", f"u{i + 1}")

        assert len(store.all_descendants("u0")) == depth
        assert store.reachable("u0", f"u{depth}")
        assert store.stats().max_depth == depth


class TestStats:
    """Tests for store-level statistics."""

    def test_empty(self):
        """An empty store has zeroed stats."""
        stats = InMemoryGraphStore().stats()

        assert stats.total_users == 0
        assert stats.total_referrals == 0
        assert stats.max_depth == 0
        assert stats.average_referrals_per_user == 0.0

    def test_tree(self, tree_store):
        """Stats of the example tree."""
        stats = tree_store.stats()

        assert stats.total_users == 5
        assert stats.total_referrals == 4
        assert stats.max_depth == 2
        assert stats.average_referrals_per_user == pytest.approx(0.8)

    def test_isolated_user_has_depth_zero(self):
        """A lone user has depth zero."""
        store = InMemoryGraphStore()
        store.upsert_user("Alice")

        assert store.stats().max_depth == 0
        assert store.stats().total_users == 1

    def test_cycle_terminates(self):
        """Depth of a two-node cycle is finite."""
        store = InMemoryGraphStore()
        store.add_edge("A", "B")
        store.add_edge("B", "A")

        assert store.stats().max_depth == 1

    def test_self_loop_adds_no_depth(self):
        """A self-loop does not deepen the tree."""
        store = InMemoryGraphStore()
        store.add_edge("A", "A")

        assert store.stats().max_depth == 0

    def test_clear(self, tree_store):
        """clear() empties the store."""
        tree_store.clear()

        assert tree_store.user_count() == 0
        assert tree_store.all_edges() == []
        assert tree_store.parent("Bob") is None


class TestCreateStore:
    """Tests for the storage factory."""

    @pytest.mark.parametrize("store_type", ["memory", "in-memory", "MEMORY"])
    def test_memory_aliases(self, store_type):
        """Every memory alias builds an in-memory store."""
        assert isinstance(create_store(store_type), InMemoryGraphStore)

    def test_default_is_memory(self):
        """The default backend is in-memory."""
        assert isinstance(create_store(), InMemoryGraphStore)

    @pytest.mark.parametrize("store_type", ["postgresql", "mongodb", "redis"])
    def test_unknown_backend_raises(self, store_type):
        """Unsupported backends raise ValueError."""
        with pytest.raises(ValueError, match="REFERRAL_STORAGE_TYPE"):
            create_store(store_type)
