"""Influence Analysis - Rank users by reach and flow centrality.

Both metrics are read-only: they go through ReferralGraph's accessors and
never mutate the network.

Reach(u) is the number of distinct users below u. On a forest this is the
size of u's subtree minus one.

Flow centrality(u) counts ordered pairs (s, t) of users other than u whose
shortest directed path s -> t passes through u as an interior node. Paths
come from one BFS per source, following children in stored order and keeping
the first parent discovered. On a forest every path is unique, so the score
is exact. If the config allows cycles or multiple referrers, ties between
equal-length paths go to whichever path the BFS finds first.
"""

from collections import deque
from dataclasses import dataclass

import structlog

from ..graph.referral_graph import ReferralGraph
from ..models import UserId

logger = structlog.get_logger()

DEFAULT_TOP_K = 5


@dataclass(frozen=True)
class InfluenceScore:
    """A user's score under one influence metric."""

    user_id: UserId
    score: int


# ---------------------------------------------------------------------------
# Reach
# ---------------------------------------------------------------------------


def reach(graph: ReferralGraph, user: UserId) -> int:
    """Number of distinct descendants of `user` (0 for unknown users)."""
    return len(graph.all_referrals(user).unwrap())


def reach_scores(graph: ReferralGraph) -> dict[UserId, int]:
    """Reach of every user.

    A user whose lookup fails is left out and logged; the rest still count.
    """
    scores: dict[UserId, int] = {}
    for user_id in _user_ids(graph):
        result = graph.all_referrals(user_id)
        if not result.success:
            logger.warning(
                "reach_skipped_user",
                user=user_id,
                reason=result.error_type.value,
                error=str(result.error),
            )
            continue
        scores[user_id] = len(result.data)
    return scores


# ---------------------------------------------------------------------------
# Flow centrality
# ---------------------------------------------------------------------------


def flow_centrality_scores(graph: ReferralGraph) -> dict[UserId, int]:
    """Flow centrality of every user.

    Runs a single BFS from each user over one adjacency snapshot. Each node
    other than the source is credited with the number of its proper
    descendants in that BFS tree. Those are exactly the targets whose
    shortest path from the source runs through it. Total cost is
    O(U * (U + E)).
    """
    adjacency = _adjacency_snapshot(graph)
    scores = dict.fromkeys(adjacency, 0)

    for source in adjacency:
        _credit_interior_nodes(adjacency, source, scores)

    # Order-dependent ties are only possible once a structural check is relaxed
    logger.debug(
        "flow_centrality_computed",
        users=len(scores),
        exact=graph.get_config().enforces_forest,
    )
    return scores


def flow_centrality(graph: ReferralGraph, user: UserId) -> int:
    """Flow centrality of one user (0 for unknown users)."""
    return flow_centrality_scores(graph).get(user, 0)


def _credit_interior_nodes(
    adjacency: dict[UserId, list[UserId]],
    source: UserId,
    scores: dict[UserId, int],
) -> None:
    parents: dict[UserId, UserId | None] = {source: None}
    order: list[UserId] = [source]
    queue = deque([source])

    while queue:
        current = queue.popleft()
        for child in adjacency.get(current, ()):
            if child in parents:
                continue
            parents[child] = current
            order.append(child)
            queue.append(child)

    below = dict.fromkeys(order, 0)
    # Reverse BFS order visits every node before its BFS parent
    for node in reversed(order[1:]):
        scores[node] += below[node]
        below[parents[node]] += below[node] + 1


def _adjacency_snapshot(graph: ReferralGraph) -> dict[UserId, list[UserId]]:
    users = graph.get_all_users().unwrap()
    return {user.user_id: list(user.direct_referrals) for user in users}


def _user_ids(graph: ReferralGraph) -> list[UserId]:
    return [user.user_id for user in graph.get_all_users().unwrap()]


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def rank(scores: dict[UserId, int], k: int | None = None) -> list[InfluenceScore]:
    """Order scores by (score desc, user_id asc), truncated to k if given."""
    if k is not None and k < 0:
        raise ValueError(f"k must be non-negative, got {k}")

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    if k is not None:
        ranked = ranked[:k]
    return [InfluenceScore(user_id=user_id, score=score) for user_id, score in ranked]


def top_k_by_reach(graph: ReferralGraph, k: int = DEFAULT_TOP_K) -> list[UserId]:
    """The k users with the greatest reach, ties broken by user id.

    Raises:
        ValueError: if k is negative
    """
    _check_k(k)
    if k == 0:
        return []
    return [entry.user_id for entry in rank(reach_scores(graph), k)]


def top_k_by_flow_centrality(graph: ReferralGraph, k: int = DEFAULT_TOP_K) -> list[UserId]:
    """The k users with the highest flow centrality, ties broken by user id.

    Raises:
        ValueError: if k is negative
    """
    _check_k(k)
    if k == 0:
        return []
    return [entry.user_id for entry in rank(flow_centrality_scores(graph), k)]


def _check_k(k: int) -> None:
    if isinstance(k, bool) or not isinstance(k, int):
        raise TypeError(f"k must be an int, got {type(k).__name__}")
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")


class InfluenceAnalyzer:
    """Influence metrics bound to one ReferralGraph.

    Convenience wrapper over the module functions.
    """

    def __init__(self, graph: ReferralGraph):
        self.graph = graph

    def reach(self, user: UserId) -> int:
        return reach(self.graph, user)

    def flow_centrality(self, user: UserId) -> int:
        return flow_centrality(self.graph, user)

    def top_k_by_reach(self, k: int = DEFAULT_TOP_K) -> list[UserId]:
        return top_k_by_reach(self.graph, k)

    def top_k_by_flow_centrality(self, k: int = DEFAULT_TOP_K) -> list[UserId]:
        return top_k_by_flow_centrality(self.graph, k)

    def rank_by_reach(self, k: int | None = None) -> list[InfluenceScore]:
        return rank(reach_scores(self.graph), k)

    def rank_by_flow_centrality(self, k: int | None = None) -> list[InfluenceScore]:
        return rank(flow_centrality_scores(self.graph), k)
