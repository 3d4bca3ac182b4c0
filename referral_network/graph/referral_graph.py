"""Referral Graph - Validate and apply referral edges against network invariants."""

from typing import Any

import structlog

from ..config import ReferralNetworkConfig
from ..errors import ReferralErrorType, Result
from ..models import NetworkStats, ReferralRelationship, UserId, UserNode, is_valid_user_id
from ..storage import GraphStore, create_store

logger = structlog.get_logger()


class ReferralGraph:
    """Gatekeeper between callers and a GraphStore.

    Every check in add_referral runs before the store is touched, so a
    rejected referral leaves the store exactly as it was. With the default
    config the network stays a forest: no self-referrals, at most one
    referrer per user, no cycles.

    Operations return a Result instead of raising. Anything the store raises
    is reported as STORAGE_ERROR.

    Not thread-safe. Hosts sharing one instance across threads must
    serialise add_referral, remove_referral, remove_user and clear, and must
    not run analytics concurrently with those writes.
    """

    def __init__(
        self,
        store: GraphStore | None = None,
        config: ReferralNetworkConfig | None = None,
    ):
        self.store = store if store is not None else create_store()
        self._config = config or ReferralNetworkConfig.from_env()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> ReferralNetworkConfig:
        return self._config

    def update_config(self, **changes: Any) -> None:
        """Apply a partial config update.

        Raises:
            TypeError: an unknown setting was named
            ValueError: a limit is not a positive int
        """
        self._config = self._config.replace(**changes)
        logger.info("referral_config_updated", **changes)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_referral(self, referrer: UserId, candidate: UserId) -> Result[None]:
        """Add the edge referrer -> candidate.

        Re-adding an edge that already exists succeeds without changing
        anything.

        Args:
            referrer: The user making the referral
            candidate: The user being referred

        Returns:
            Result.ok() on success, or a failed Result naming the violated rule
        """
        invalid = self._validate_ids(referrer=referrer, candidate=candidate)
        if invalid:
            return invalid

        try:
            rejection = self._check_constraints(referrer, candidate)
            if rejection is not None:
                logger.info(
                    "referral_rejected",
                    referrer=referrer,
                    candidate=candidate,
                    reason=rejection.error_type.value,
                )
                return rejection

            if self.store.has_edge(referrer, candidate):
                logger.debug("referral_exists", referrer=referrer, candidate=candidate)
                return Result.ok()

            self.store.add_edge(referrer, candidate)
        except Exception as e:
            return self._storage_failure(
                "add_referral", e, referrer=referrer, candidate=candidate
            )

        logger.info("referral_added", referrer=referrer, candidate=candidate)
        return Result.ok()

    def remove_referral(self, referrer: UserId, candidate: UserId) -> Result[None]:
        """Remove the edge referrer -> candidate; the candidate becomes a root.

        Removing an edge that does not exist succeeds without changing anything.
        """
        invalid = self._validate_ids(referrer=referrer, candidate=candidate)
        if invalid:
            return invalid

        try:
            if not self.store.has_edge(referrer, candidate):
                logger.debug("referral_absent", referrer=referrer, candidate=candidate)
                return Result.ok()
            self.store.remove_edge(referrer, candidate)
        except Exception as e:
            return self._storage_failure(
                "remove_referral", e, referrer=referrer, candidate=candidate
            )

        logger.info("referral_removed", referrer=referrer, candidate=candidate)
        return Result.ok()

    def remove_user(self, user: UserId) -> Result[None]:
        """Remove a user and all its edges. Its children become roots."""
        invalid = self._validate_ids(user=user)
        if invalid:
            return invalid

        try:
            if not self.store.user_exists(user):
                return Result.fail(
                    ReferralErrorType.USER_NOT_FOUND, "User not found", user=user
                )
            orphaned = self.store.direct_children(user)
            self.store.remove_user(user)
        except Exception as e:
            return self._storage_failure("remove_user", e, user=user)

        logger.info("user_removed", user=user, orphaned=len(orphaned))
        return Result.ok()

    def clear(self) -> Result[None]:
        """Delete every user and referral."""
        try:
            self.store.clear()
        except Exception as e:
            return self._storage_failure("clear", e)
        return Result.ok()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def direct_referrals(self, user: UserId) -> Result[list[UserId]]:
        """Users directly referred by `user` (empty for unknown users)."""
        return self._read("direct_referrals", self.store.direct_children, user)

    def all_referrals(self, user: UserId) -> Result[list[UserId]]:
        """All direct and indirect referrals of `user`, in pre-order."""
        return self._read("all_referrals", self.store.all_descendants, user)

    def get_parent(self, user: UserId) -> Result[UserId | None]:
        return self._read("get_parent", self.store.parent, user)

    def user_exists(self, user: UserId) -> Result[bool]:
        return self._read("user_exists", self.store.user_exists, user)

    def get_all_users(self) -> Result[list[UserNode]]:
        try:
            return Result.ok(self.store.all_users())
        except Exception as e:
            return self._storage_failure("get_all_users", e)

    def get_all_referrals(self) -> Result[list[ReferralRelationship]]:
        try:
            return Result.ok(self.store.all_edges())
        except Exception as e:
            return self._storage_failure("get_all_referrals", e)

    def get_network_stats(self) -> Result[NetworkStats]:
        try:
            return Result.ok(self.store.stats())
        except Exception as e:
            return self._storage_failure("get_network_stats", e)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_constraints(self, referrer: UserId, candidate: UserId) -> Result[None] | None:
        """Return a failed Result for the first violated rule, else None."""
        config = self._config

        if referrer == candidate and not config.allow_self_referrals:
            return Result.fail(
                ReferralErrorType.SELF_REFERRAL,
                "Self-referrals are not allowed",
                referrer=referrer,
                candidate=candidate,
            )

        if self.store.has_edge(referrer, candidate):
            return None

        if not config.allow_multiple_referrers:
            existing_parent = self.store.parent(candidate)
            if existing_parent is not None and existing_parent != referrer:
                return Result.fail(
                    ReferralErrorType.MULTIPLE_REFERRERS,
                    "Candidate already has a referrer",
                    candidate=candidate,
                    existing_parent=existing_parent,
                    new_referrer=referrer,
                )

        # candidate reaching referrer means the new edge would close a loop
        if not config.allow_cycles and self.store.reachable(candidate, referrer):
            return Result.fail(
                ReferralErrorType.CYCLE_DETECTED,
                "Adding this referral would create a cycle",
                referrer=referrer,
                candidate=candidate,
            )

        if config.max_network_size is not None:
            current_size = self.store.user_count()
            if current_size >= config.max_network_size:
                return Result.fail(
                    ReferralErrorType.NETWORK_SIZE_LIMIT,
                    "Network size limit reached",
                    max_size=config.max_network_size,
                    current_size=current_size,
                )

        if config.max_referrals_per_user is not None:
            current_referrals = len(self.store.direct_children(referrer))
            if current_referrals >= config.max_referrals_per_user:
                return Result.fail(
                    ReferralErrorType.REFERRAL_LIMIT,
                    "User has reached maximum referral limit",
                    user=referrer,
                    max_referrals=config.max_referrals_per_user,
                    current_referrals=current_referrals,
                )

        return None

    def _validate_ids(self, **ids: Any) -> Result | None:
        for role, value in ids.items():
            if not is_valid_user_id(value):
                return Result.fail(
                    ReferralErrorType.INVALID_INPUT,
                    f"Invalid {role} ID",
                    **{role: value},
                )
        return None

    def _read(self, operation: str, fetch, user: UserId) -> Result:
        invalid = self._validate_ids(user=user)
        if invalid:
            return invalid
        try:
            return Result.ok(fetch(user))
        except Exception as e:
            return self._storage_failure(operation, e, user=user)

    def _storage_failure(self, operation: str, error: Exception, **context: Any) -> Result:
        logger.warning("referral_storage_error", operation=operation, error=str(error), **context)
        return Result.fail(
            ReferralErrorType.STORAGE_ERROR,
            f"Storage failure during {operation}",
            original_error=error,
            **context,
        )
