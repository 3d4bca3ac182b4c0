"""Graph module - invariant-enforcing referral graph."""

from .referral_graph import ReferralGraph

__all__ = [
    "ReferralGraph",
]
