"""Central configuration -- defaults driven by environment variables.

Every toggle relaxes one structural check in ReferralGraph. With all of them
off (the default) the network is guaranteed to stay a forest of rooted trees.

  REFERRAL_ALLOW_SELF_REFERRALS      "true"/"false" (default false)
  REFERRAL_ALLOW_MULTIPLE_REFERRERS  "true"/"false" (default false)
  REFERRAL_ALLOW_CYCLES              "true"/"false" (default false)
  REFERRAL_MAX_NETWORK_SIZE          positive int, unset = unlimited
  REFERRAL_MAX_REFERRALS_PER_USER    positive int, unset = unlimited
  REFERRAL_STORAGE_TYPE              "memory" (only backend shipped)
  REFERRAL_TOP_K_DEFAULT             default k for the ranking scripts
"""

import dataclasses
import os
from dataclasses import dataclass
from typing import Any

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else None


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
STORAGE_TYPE = os.environ.get("REFERRAL_STORAGE_TYPE", "memory")

# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
TOP_K_DEFAULT = int(os.environ.get("REFERRAL_TOP_K_DEFAULT", "5"))


@dataclass(frozen=True)
class ReferralNetworkConfig:
    """Relaxation toggles and capacity limits for a ReferralGraph."""

    allow_self_referrals: bool = False
    allow_multiple_referrers: bool = False
    allow_cycles: bool = False
    max_network_size: int | None = None
    max_referrals_per_user: int | None = None

    def __post_init__(self):
        for name in ("max_network_size", "max_referrals_per_user"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive int or None, got {value!r}")

    @property
    def enforces_forest(self) -> bool:
        """True when all three structural checks are active."""
        return not (
            self.allow_self_referrals or self.allow_multiple_referrers or self.allow_cycles
        )

    @classmethod
    def from_env(cls) -> "ReferralNetworkConfig":
        return cls(
            allow_self_referrals=_env_bool("REFERRAL_ALLOW_SELF_REFERRALS"),
            allow_multiple_referrers=_env_bool("REFERRAL_ALLOW_MULTIPLE_REFERRERS"),
            allow_cycles=_env_bool("REFERRAL_ALLOW_CYCLES"),
            max_network_size=_env_int("REFERRAL_MAX_NETWORK_SIZE"),
            max_referrals_per_user=_env_int("REFERRAL_MAX_REFERRALS_PER_USER"),
        )

    def replace(self, **changes: Any) -> "ReferralNetworkConfig":
        """Return a validated copy with `changes` applied.

        Raises:
            TypeError: an unknown field name was given
            ValueError: a limit is not a positive int
        """
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
