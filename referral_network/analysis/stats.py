"""Network Stats - Aggregate metrics derived from GraphStore state."""

from dataclasses import dataclass
from typing import Any

import structlog

from ..models import NetworkStats, UserId
from ..storage import GraphStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class NetworkSummary:
    """NetworkStats plus ratios derived from the tree shape."""

    stats: NetworkStats
    root_count: int
    leaf_count: int
    referred_fraction: float  # Share of users that have a referrer
    average_depth: float  # Mean distance from each user to its root

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.stats.to_dict(),
            "root_count": self.root_count,
            "leaf_count": self.leaf_count,
            "referred_fraction": self.referred_fraction,
            "average_depth": self.average_depth,
        }


class StatsComputer:
    """Compute network statistics. Holds no state of its own."""

    def __init__(self, store: GraphStore):
        self.store = store

    def network_stats(self) -> NetworkStats:
        return self.store.stats()

    def summary(self) -> NetworkSummary:
        stats = self.store.stats()
        users = self.store.all_users()
        parents = {user.user_id: user.parent for user in users}

        root_count = sum(1 for parent in parents.values() if parent is None)
        leaf_count = sum(1 for user in users if not user.direct_referrals)
        depths = self._depths(parents)

        total = stats.total_users
        summary = NetworkSummary(
            stats=stats,
            root_count=root_count,
            leaf_count=leaf_count,
            referred_fraction=(total - root_count) / total if total else 0.0,
            average_depth=sum(depths.values()) / total if total else 0.0,
        )
        logger.debug("network_summary_computed", **summary.to_dict())
        return summary

    @staticmethod
    def _depths(parents: dict[UserId, UserId | None]) -> dict[UserId, int]:
        """Depth of every user along its parent chain.

        Chains that loop back on themselves (possible only under a relaxed
        config) stop at the first repeated user.
        """
        depths: dict[UserId, int] = {}

        for start in parents:
            chain: list[UserId] = []
            seen: set[UserId] = set()
            current: UserId | None = start
            while current is not None and current not in depths and current not in seen:
                seen.add(current)
                chain.append(current)
                current = parents.get(current)

            base = depths[current] + 1 if current is not None and current in depths else 0
            for offset, user_id in enumerate(reversed(chain)):
                depths[user_id] = base + offset

        return depths
