"""
High-level use cases for signup codes.

Routers and scripts call these services instead of touching the record
store directly: RedemptionService consumes capacity, LifecycleService
creates, updates and reports on codes.
"""

from .errors import (
    CodeGenerationExhaustedError,
    CodeNotFoundError,
    CodeNotRedeemableError,
    InvalidCodeFormatError,
    InvalidCodeSettingsError,
    LifecycleError,
    LifecycleUnavailableError,
    RedemptionError,
    RedemptionUnavailableError,
    SignupCodeError,
)
from .lifecycle_service import UNSET, CodePatch, LifecycleService
from .redemption_service import RedemptionResult, RedemptionService

__all__ = [
    "CodeGenerationExhaustedError",
    "CodeNotFoundError",
    "CodeNotRedeemableError",
    "CodePatch",
    "InvalidCodeFormatError",
    "InvalidCodeSettingsError",
    "LifecycleError",
    "LifecycleService",
    "LifecycleUnavailableError",
    "RedemptionError",
    "RedemptionResult",
    "RedemptionService",
    "RedemptionUnavailableError",
    "SignupCodeError",
    "UNSET",
]
