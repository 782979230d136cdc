"""Exceptions raised by the signup-code services."""

from __future__ import annotations


class SignupCodeError(Exception):
    """Base exception for signup-code workflows."""


class InvalidCodeFormatError(SignupCodeError):
    """Raised when a code is not six alphanumeric characters."""


class RedemptionError(SignupCodeError):
    """Base class for redemption failures."""


class CodeNotRedeemableError(RedemptionError):
    """Raised when a code cannot be redeemed.

    Unknown, inactive, expired and exhausted codes all map here so callers
    cannot probe which codes exist or how much capacity is left.
    """


class RedemptionUnavailableError(RedemptionError):
    """Raised when the store could not confirm the outcome; safe to retry."""


class LifecycleError(SignupCodeError):
    """Base class for administrative failures."""


class CodeNotFoundError(LifecycleError):
    pass


class CodeGenerationExhaustedError(LifecycleError):
    pass


class InvalidCodeSettingsError(LifecycleError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LifecycleUnavailableError(LifecycleError):
    pass
