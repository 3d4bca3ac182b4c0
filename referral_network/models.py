"""Data model - Users, referral edges and network statistics."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

UserId = str


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class UserNode:
    """A user in the referral network.

    `parent` is a back-reference to the referrer, never an ownership edge.
    """

    user_id: UserId
    created_at: datetime = field(default_factory=utc_now)
    direct_referrals: list[UserId] = field(default_factory=list)
    parent: UserId | None = None

    def copy(self) -> "UserNode":
        return UserNode(
            user_id=self.user_id,
            created_at=self.created_at,
            direct_referrals=list(self.direct_referrals),
            parent=self.parent,
        )


@dataclass(frozen=True)
class ReferralRelationship:
    """A directed referrer -> candidate edge."""

    referrer: UserId
    candidate: UserId
    created_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> tuple[UserId, UserId]:
        return (self.referrer, self.candidate)


@dataclass(frozen=True)
class NetworkStats:
    """Aggregate counts over the whole network."""

    total_users: int
    total_referrals: int
    max_depth: int
    average_referrals_per_user: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_users": self.total_users,
            "total_referrals": self.total_referrals,
            "max_depth": self.max_depth,
            "average_referrals_per_user": self.average_referrals_per_user,
        }


def is_valid_user_id(user_id: Any) -> bool:
    """A user id is any string with at least one non-whitespace character."""
    return isinstance(user_id, str) and bool(user_id.strip())
