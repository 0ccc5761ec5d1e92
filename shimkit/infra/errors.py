"""Custom exception hierarchy for shimkit.

All library exceptions inherit from ShimError, which carries a stable
error code so callers can branch without matching on message text.
"""

from __future__ import annotations


class ShimError(Exception):
    """Base exception for all shimkit errors."""

    def __init__(self, message: str, *, code: str = "SHIM_ERROR") -> None:
        super().__init__(message)
        self.code = code


class NotStartedError(ShimError):
    """An operation was attempted before start() (or after reset())."""

    def __init__(
        self,
        message: str = "shimkit may not be used before start() has been called",
    ) -> None:
        super().__init__(message, code="NOT_STARTED")


class InvalidMirrorShapeError(ShimError):
    """A mirror registration named a class that is not a data record."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_MIRROR_SHAPE")


class IncompleteAdapterError(ShimError):
    """A synthesized adapter does not conform to every requested contract.

    missing lists the contract members (as "Contract.member") that found no
    compatible implementation member.
    """

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message, code="INCOMPLETE_ADAPTER")
        self.missing = missing
