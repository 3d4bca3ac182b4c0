"""Errors - Referral error taxonomy and the tagged Result type."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ReferralErrorType(Enum):
    """Kinds of failure a referral operation can report."""

    INVALID_INPUT = "invalid_input"
    SELF_REFERRAL = "self_referral"
    MULTIPLE_REFERRERS = "multiple_referrers"
    CYCLE_DETECTED = "cycle_detected"
    NETWORK_SIZE_LIMIT = "network_size_limit"
    REFERRAL_LIMIT = "referral_limit"
    USER_NOT_FOUND = "user_not_found"  # Only for operations that need existence
    STORAGE_ERROR = "storage_error"  # Wraps any failure from the store


class ReferralError(Exception):
    """Failure carried by a Result, or raised by Result.unwrap()."""

    def __init__(
        self,
        error_type: ReferralErrorType,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"ReferralError({self.error_type.value!r}, {self.message!r})"


@dataclass
class Result(Generic[T]):
    """Outcome of a ReferralGraph operation.

    Exactly one of `data` (on success) or `error` (on failure) is meaningful.
    """

    success: bool
    data: T | None = None
    error: ReferralError | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        error_type: ReferralErrorType,
        message: str,
        **details: Any,
    ) -> "Result[T]":
        return cls(success=False, error=ReferralError(error_type, message, details))

    @property
    def error_type(self) -> ReferralErrorType | None:
        return self.error.error_type if self.error else None

    def unwrap(self) -> T | None:
        """Return the data, raising the carried ReferralError on failure."""
        if not self.success:
            raise self.error
        return self.data
