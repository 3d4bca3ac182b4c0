"""Referral Network - invariant-checked referral graph with influence analytics."""

from .analysis import (
    InfluenceAnalyzer,
    InfluenceScore,
    NetworkSummary,
    StatsComputer,
    top_k_by_flow_centrality,
    top_k_by_reach,
)
from .config import ReferralNetworkConfig
from .errors import ReferralError, ReferralErrorType, Result
from .graph import ReferralGraph
from .models import NetworkStats, ReferralRelationship, UserId, UserNode
from .storage import GraphStore, InMemoryGraphStore, create_store

__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "InfluenceAnalyzer",
    "InfluenceScore",
    "NetworkStats",
    "NetworkSummary",
    "ReferralError",
    "ReferralErrorType",
    "ReferralGraph",
    "ReferralNetworkConfig",
    "ReferralRelationship",
    "Result",
    "StatsComputer",
    "UserId",
    "UserNode",
    "create_store",
    "top_k_by_flow_centrality",
    "top_k_by_reach",
]
