"""Redemption use case: consume one unit of a signup code's capacity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from signupcodes.domain.codes import CodeRecord, is_valid_code, mask_code, normalize_code
from signupcodes.repositories.sql_repository import SignupCodeRepository, StoreError
from signupcodes.services.errors import (
    CodeNotRedeemableError,
    InvalidCodeFormatError,
    RedemptionUnavailableError,
)

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    code: str
    current_usages: int
    max_usages: int
    remaining_usages: int
    expires_at: Optional[datetime]
    is_active: bool

    @classmethod
    def from_record(cls, record: CodeRecord, *, is_active: bool) -> "RedemptionResult":
        return cls(
            code=record.code,
            current_usages=record.current_usages,
            max_usages=record.max_usages,
            remaining_usages=record.remaining_usages,
            expires_at=record.expires_at,
            is_active=is_active,
        )


class RedemptionService:
    """Decides eligibility and performs the atomic capacity decrement.

    The service keeps no shared state of its own; concurrent calls for the
    same code are serialized by the store's conditional update.
    """

    def __init__(self, repository: SignupCodeRepository | None = None) -> None:
        self.repository = repository or SignupCodeRepository()

    def _validated(self, code: str | None) -> str:
        candidate = normalize_code(code)
        if not is_valid_code(candidate):
            raise InvalidCodeFormatError("Signup code must be 6 alphanumeric characters")
        return candidate

    def check(self, code: str | None) -> bool:
        """Read-only eligibility probe; never changes usage counters."""
        candidate = self._validated(code)
        try:
            return self.repository.find_eligible(candidate) is not None
        except StoreError as exc:
            logger.warning("Eligibility check unavailable code=%s: %s", mask_code(candidate), exc)
            raise RedemptionUnavailableError("Signup code service unavailable") from exc

    def redeem(self, code: str | None) -> RedemptionResult:
        candidate = self._validated(code)
        masked = mask_code(candidate)

        try:
            current = self.repository.find_eligible(candidate)
        except StoreError as exc:
            logger.warning("Redemption lookup unavailable code=%s: %s", masked, exc)
            raise RedemptionUnavailableError("Signup code service unavailable") from exc
        if current is None:
            raise CodeNotRedeemableError("Invalid or expired signup code")

        try:
            updated = self.repository.conditional_increment(candidate, current.max_usages)
        except StoreError as exc:
            # The write may have landed; report unknown instead of success.
            logger.error("Redemption outcome unknown code=%s: %s", masked, exc)
            raise RedemptionUnavailableError("Signup code service unavailable") from exc
        if updated is None:
            logger.info("Redemption lost race or code became ineligible code=%s", masked)
            raise CodeNotRedeemableError("Invalid or expired signup code")

        is_active = updated.is_active
        if updated.current_usages >= updated.max_usages:
            try:
                deactivated = self.repository.deactivate(candidate, only_if_exhausted=True)
            except StoreError as exc:
                # Capacity predicate already blocks further redemptions.
                logger.warning("Auto-deactivation failed code=%s: %s", masked, exc)
            else:
                if deactivated:
                    is_active = False
                    logger.info("Signup code exhausted and deactivated code=%s", masked)

        logger.info(
            "Signup code redeemed code=%s usages=%d/%d",
            masked,
            updated.current_usages,
            updated.max_usages,
        )
        return RedemptionResult.from_record(updated, is_active=is_active)
