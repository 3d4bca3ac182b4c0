"""Analysis module - read-only influence metrics and network statistics."""

from .influence import (
    DEFAULT_TOP_K,
    InfluenceAnalyzer,
    InfluenceScore,
    flow_centrality,
    flow_centrality_scores,
    rank,
    reach,
    reach_scores,
    top_k_by_flow_centrality,
    top_k_by_reach,
)
from .stats import NetworkSummary, StatsComputer

__all__ = [
    "DEFAULT_TOP_K",
    "InfluenceAnalyzer",
    "InfluenceScore",
    "NetworkSummary",
    "StatsComputer",
    "flow_centrality",
    "flow_centrality_scores",
    "rank",
    "reach",
    "reach_scores",
    "top_k_by_flow_centrality",
    "top_k_by_reach",
]
