"""Storage backends -- factory selects the GraphStore from config."""

from .in_memory_store import InMemoryGraphStore
from .interfaces import GraphStore

_MEMORY_ALIASES = {"memory", "in-memory", "in_memory", "inmemory"}


def create_store(store_type: str | None = None) -> GraphStore:
    """Create a GraphStore based on configuration.

    When `store_type` is omitted it falls back to REFERRAL_STORAGE_TYPE
    (see referral_network.config).
    """
    from ..config import STORAGE_TYPE

    stype = (store_type or STORAGE_TYPE).strip().lower()

    if stype in _MEMORY_ALIASES:
        return InMemoryGraphStore()
    raise ValueError(
        f"Unknown REFERRAL_STORAGE_TYPE={stype!r}. "
        "Only the in-memory backend ('memory') is available."
    )


__all__ = [
    "GraphStore",
    "InMemoryGraphStore",
    "create_store",
]
