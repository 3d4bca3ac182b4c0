"""GraphStore interface - what ReferralGraph needs from a persistence backend."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from ..models import NetworkStats, ReferralRelationship, UserId, UserNode


@runtime_checkable
class GraphStore(Protocol):
    """Storage for users and referral edges.

    Mutations are unchecked: enforcing the network invariants is the caller's
    job. Read methods return copies so callers cannot alter stored state.
    Unknown users yield empty results rather than errors.
    """

    def upsert_user(self, user_id: UserId, created_at: datetime | None = None) -> None: ...
    def get_user(self, user_id: UserId) -> UserNode | None: ...
    def user_exists(self, user_id: UserId) -> bool: ...
    def user_count(self) -> int: ...

    def has_edge(self, referrer: UserId, candidate: UserId) -> bool: ...
    def add_edge(
        self, referrer: UserId, candidate: UserId, created_at: datetime | None = None
    ) -> None: ...
    def remove_edge(self, referrer: UserId, candidate: UserId) -> None: ...
    def remove_user(self, user_id: UserId) -> None: ...

    def direct_children(self, user_id: UserId) -> list[UserId]: ...
    def all_descendants(self, user_id: UserId) -> list[UserId]: ...
    def parent(self, user_id: UserId) -> UserId | None: ...
    def reachable(self, source: UserId, target: UserId) -> bool: ...

    def all_users(self) -> list[UserNode]: ...
    def all_edges(self) -> list[ReferralRelationship]: ...
    def stats(self) -> NetworkStats: ...
    def clear(self) -> None: ...
