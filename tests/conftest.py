"""Shared test fixtures for the referral network."""

import pytest

from referral_network.config import ReferralNetworkConfig
from referral_network.graph import ReferralGraph
from referral_network.storage import InMemoryGraphStore


class FailingStore(InMemoryGraphStore):
    """Store double whose chosen methods raise, optionally only for some users."""

    def __init__(self, failing: set[str], users: set[str] | None = None):
        super().__init__()
        self.failing = failing
        self.users = users

    def _maybe_fail(self, method: str, *user_ids: str) -> None:
        if method not in self.failing:
            return
        if self.users is None or self.users.intersection(user_ids):
            raise RuntimeError(f"{method} unavailable")

    def add_edge(self, referrer, candidate, created_at=None):
        self._maybe_fail("add_edge", referrer, candidate)
        super().add_edge(referrer, candidate, created_at)

    def direct_children(self, user_id):
        self._maybe_fail("direct_children", user_id)
        return super().direct_children(user_id)

    def all_descendants(self, user_id):
        self._maybe_fail("all_descendants", user_id)
        return super().all_descendants(user_id)

    def all_users(self):
        self._maybe_fail("all_users")
        return super().all_users()

    def stats(self):
        self._maybe_fail("stats")
        return super().stats()


@pytest.fixture
def example_referrals():
    """Alice -> {Bob, Charlie}, Bob -> {David, Eve}, in insertion order."""
    return [
        ("Alice", "Bob"),
        ("Alice", "Charlie"),
        ("Bob", "David"),
        ("Bob", "Eve"),
    ]


@pytest.fixture
def snapshot():
    """Capture everything observable about a graph's state for before/after comparison."""

    def _snapshot(graph: ReferralGraph):
        store = graph.store
        return (
            store.all_users(),
            [edge.key for edge in store.all_edges()],
            store.stats(),
        )

    return _snapshot


@pytest.fixture
def build():
    """Add referrals in order, failing the test on any rejection."""

    def _build(graph: ReferralGraph, edges) -> ReferralGraph:
        for referrer, candidate in edges:
            graph.add_referral(referrer, candidate).unwrap()
        return graph

    return _build


@pytest.fixture
def make_graph():
    """Create an empty graph over a fresh in-memory store with the given settings."""

    def _make_graph(**config) -> ReferralGraph:
        return ReferralGraph(store=InMemoryGraphStore(), config=ReferralNetworkConfig(**config))

    return _make_graph


@pytest.fixture
def failing_graph():
    """Create a graph over a FailingStore; returns (graph, store)."""

    def _failing_graph(failing: set[str], users: set[str] | None = None, **config):
        store = FailingStore(failing=failing, users=users)
        return ReferralGraph(store=store, config=ReferralNetworkConfig(**config)), store

    return _failing_graph


@pytest.fixture
def store():
    return InMemoryGraphStore()


@pytest.fixture
def graph(store):
    """Empty graph with default (forest-enforcing) config."""
    return ReferralGraph(store=store, config=ReferralNetworkConfig())


@pytest.fixture
def example_graph(graph, build, example_referrals):
    """Alice -> {Bob, Charlie}, Bob -> {David, Eve}."""
    return build(graph, example_referrals)
