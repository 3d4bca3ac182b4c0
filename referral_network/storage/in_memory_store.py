"""In-Memory Store - Dict-backed GraphStore for referral networks."""

from collections import deque
from datetime import datetime

import structlog

from ..models import NetworkStats, ReferralRelationship, UserId, UserNode, utc_now

logger = structlog.get_logger()


class InMemoryGraphStore:
    """GraphStore keeping users and edges in process memory.

    Users, edges and incoming-referrer lists are all keyed by id, so node
    lookup, edge lookup and parent fix-ups are O(1). Traversals are
    iterative and carry a visited set, so they stay safe on deep chains and
    terminate even when the caller has relaxed the cycle check.
    """

    def __init__(self):
        self._users: dict[UserId, UserNode] = {}
        self._edges: dict[tuple[UserId, UserId], ReferralRelationship] = {}
        # candidate -> referrers, in insertion order (more than one only if relaxed)
        self._referrers: dict[UserId, list[UserId]] = {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def upsert_user(self, user_id: UserId, created_at: datetime | None = None) -> None:
        """Create the user if it does not exist yet."""
        if user_id in self._users:
            return
        self._users[user_id] = UserNode(user_id=user_id, created_at=created_at or utc_now())

    def get_user(self, user_id: UserId) -> UserNode | None:
        node = self._users.get(user_id)
        return node.copy() if node else None

    def user_exists(self, user_id: UserId) -> bool:
        return user_id in self._users

    def user_count(self) -> int:
        return len(self._users)

    def remove_user(self, user_id: UserId) -> None:
        """Remove a user and every edge touching it.

        Former children become roots; they are not re-homed.
        """
        node = self._users.get(user_id)
        if node is None:
            return

        for child in list(node.direct_referrals):
            self.remove_edge(user_id, child)
        for referrer in list(self._referrers.get(user_id, [])):
            self.remove_edge(referrer, user_id)

        del self._users[user_id]
        self._referrers.pop(user_id, None)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def has_edge(self, referrer: UserId, candidate: UserId) -> bool:
        return (referrer, candidate) in self._edges

    def add_edge(
        self,
        referrer: UserId,
        candidate: UserId,
        created_at: datetime | None = None,
    ) -> None:
        """Record referrer -> candidate without any invariant checks.

        Missing endpoints are created first. Re-adding an existing edge is a
        no-op, so a child is never listed twice.
        """
        if (referrer, candidate) in self._edges:
            return

        timestamp = created_at or utc_now()
        self.upsert_user(referrer, timestamp)
        self.upsert_user(candidate, timestamp)

        self._edges[(referrer, candidate)] = ReferralRelationship(
            referrer=referrer,
            candidate=candidate,
            created_at=timestamp,
        )
        self._users[referrer].direct_referrals.append(candidate)
        self._referrers.setdefault(candidate, []).append(referrer)
        self._users[candidate].parent = referrer

    def remove_edge(self, referrer: UserId, candidate: UserId) -> None:
        """Delete referrer -> candidate and fix both endpoints' pointers."""
        if self._edges.pop((referrer, candidate), None) is None:
            return

        self._users[referrer].direct_referrals.remove(candidate)

        remaining = self._referrers.get(candidate, [])
        remaining.remove(referrer)
        if not remaining:
            self._referrers.pop(candidate, None)
        self._users[candidate].parent = remaining[-1] if remaining else None

    # ------------------------------------------------------------------
    # Graph queries
    # ------------------------------------------------------------------

    def direct_children(self, user_id: UserId) -> list[UserId]:
        node = self._users.get(user_id)
        return list(node.direct_referrals) if node else []

    def parent(self, user_id: UserId) -> UserId | None:
        node = self._users.get(user_id)
        return node.parent if node else None

    def all_descendants(self, user_id: UserId) -> list[UserId]:
        """All users below `user_id`, each once, in pre-order.

        The start user is never part of the result, even if a relaxed
        configuration lets it reach itself.
        """
        if user_id not in self._users:
            return []

        visited: set[UserId] = {user_id}
        result: list[UserId] = []
        stack = list(reversed(self._users[user_id].direct_referrals))

        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            result.append(current)
            stack.extend(reversed(self._users[current].direct_referrals))

        return result

    def reachable(self, source: UserId, target: UserId) -> bool:
        """True iff a path of zero or more edges leads from source to target."""
        if source == target:
            return True
        if source not in self._users or target not in self._users:
            return False

        visited: set[UserId] = {source}
        queue = deque([source])

        while queue:
            current = queue.popleft()
            for child in self._users[current].direct_referrals:
                if child == target:
                    return True
                if child not in visited:
                    visited.add(child)
                    queue.append(child)

        return False

    # ------------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------------

    def all_users(self) -> list[UserNode]:
        return [node.copy() for node in self._users.values()]

    def all_edges(self) -> list[ReferralRelationship]:
        return list(self._edges.values())

    def stats(self) -> NetworkStats:
        total_users = len(self._users)
        total_referrals = len(self._edges)
        return NetworkStats(
            total_users=total_users,
            total_referrals=total_referrals,
            max_depth=self._max_depth(),
            average_referrals_per_user=(
                total_referrals / total_users if total_users else 0.0
            ),
        )

    def clear(self) -> None:
        """Delete all users and edges."""
        self._users.clear()
        self._edges.clear()
        self._referrers.clear()
        logger.warning("cleared_referral_store")

    def _max_depth(self) -> int:
        """Length of the longest child chain (a root alone has depth 0).

        Post-order height pass; an edge back onto the current path adds
        nothing, which keeps the walk finite when cycles are allowed.
        """
        heights: dict[UserId, int] = {}

        for start in self._users:
            if start in heights:
                continue

            on_path: set[UserId] = {start}
            stack = [(start, iter(self._users[start].direct_referrals))]

            while stack:
                node, children = stack[-1]
                child = next(children, None)

                if child is None:
                    stack.pop()
                    on_path.discard(node)
                    heights[node] = max(
                        (
                            heights[c] + 1
                            for c in self._users[node].direct_referrals
                            if c in heights
                        ),
                        default=0,
                    )
                elif child not in heights and child not in on_path:
                    on_path.add(child)
                    stack.append((child, iter(self._users[child].direct_referrals)))

        return max(heights.values(), default=0)
