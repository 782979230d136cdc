"""Administrative use cases: create, update and inspect signup codes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from signupcodes.core.config import get_settings
from signupcodes.domain.codes import CodeRecord, generate_code, is_valid_code, mask_code, normalize_code, to_utc
from signupcodes.repositories.sql_repository import (
    DuplicateCodeError,
    SignupCodeRepository,
    StoreError,
)
from signupcodes.services.errors import (
    CodeGenerationExhaustedError,
    CodeNotFoundError,
    InvalidCodeSettingsError,
    LifecycleUnavailableError,
)

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass
class CodePatch:
    """Administrative changes; fields left as UNSET are not touched.

    ``expires_at=None`` clears the expiry. Raising ``max_usages`` does not
    reactivate a code; ``is_active=True`` has to be sent explicitly.
    """

    max_usages: Any = UNSET
    is_active: Any = UNSET
    expires_at: Any = UNSET

    def values(self) -> dict:
        out = {}
        for name in ("max_usages", "is_active", "expires_at"):
            value = getattr(self, name)
            if value is not UNSET:
                out[name] = value
        return out


@dataclass
class LifecycleService:
    """Creation, administrative update and status lookup of signup codes."""

    repository: Optional[SignupCodeRepository] = None
    code_factory: Callable[[], str] = field(default=generate_code)

    def __post_init__(self):
        self.settings = get_settings()
        if self.repository is None:
            self.repository = SignupCodeRepository()

    # -------------------------------------- helpers --------------------------------------
    def _check_max_usages(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidCodeSettingsError("maxUsages must be an integer")
        if value < 1 or value > self.settings.max_usages_limit:
            raise InvalidCodeSettingsError(f"maxUsages must be between 1 and {self.settings.max_usages_limit}")
        return value

    def _lookup_key(self, code: str | None) -> str:
        candidate = normalize_code(code)
        if not is_valid_code(candidate):
            # Administrative callers are trusted; a malformed code simply does not exist.
            raise CodeNotFoundError(f"Signup code {code!r} not found")
        return candidate

    # -------------------------------------- generate --------------------------------------
    def generate(self, max_usages: int, created_by: str, expires_at: datetime | None = None) -> CodeRecord:
        max_usages = self._check_max_usages(max_usages)
        creator = (created_by or "").strip()
        if not creator:
            raise InvalidCodeSettingsError("createdBy is required")
        expires = to_utc(expires_at)

        attempts = self.settings.code_generation_attempts
        for attempt in range(1, attempts + 1):
            candidate = normalize_code(self.code_factory())
            record = CodeRecord(
                code=candidate,
                max_usages=max_usages,
                current_usages=0,
                is_active=True,
                created_by=creator,
                expires_at=expires,
                created_at=None,
                updated_at=None,
            )
            try:
                created = self.repository.create(record)
            except DuplicateCodeError:
                logger.info("Generated code collided (attempt %d/%d)", attempt, attempts)
                continue
            except StoreError as exc:
                raise LifecycleUnavailableError("Signup code store unavailable") from exc
            logger.info(
                "Signup code created code=%s max_usages=%d created_by=%s",
                mask_code(created.code),
                created.max_usages,
                creator,
            )
            return created

        logger.error("Could not generate a unique signup code after %d attempts", attempts)
        raise CodeGenerationExhaustedError(f"Failed to generate a unique signup code after {attempts} attempts")

    # -------------------------------------- admin update --------------------------------------
    def admin_update(self, code: str, patch: CodePatch) -> CodeRecord:
        key = self._lookup_key(code)
        values = patch.values()
        if "max_usages" in values:
            values["max_usages"] = self._check_max_usages(values["max_usages"])
        if "is_active" in values and not isinstance(values["is_active"], bool):
            raise InvalidCodeSettingsError("isActive must be a boolean")
        if "expires_at" in values and values["expires_at"] is not None and not isinstance(values["expires_at"], datetime):
            raise InvalidCodeSettingsError("expiresAt must be a datetime or null")

        try:
            updated = self.repository.update_admin(key, values)
        except StoreError as exc:
            raise LifecycleUnavailableError("Signup code store unavailable") from exc
        if updated is None:
            raise CodeNotFoundError(f"Signup code {key} not found")
        if updated.current_usages > updated.max_usages:
            logger.warning(
                "maxUsages lowered below recorded usages code=%s usages=%d/%d",
                mask_code(key),
                updated.current_usages,
                updated.max_usages,
            )
        logger.info("Signup code updated code=%s fields=%s", mask_code(key), ",".join(sorted(values)) or "-")
        return updated

    # -------------------------------------- queries --------------------------------------
    def get_status(self, code: str) -> CodeRecord:
        key = self._lookup_key(code)
        try:
            record = self.repository.get(key)
        except StoreError as exc:
            raise LifecycleUnavailableError("Signup code store unavailable") from exc
        if record is None:
            raise CodeNotFoundError(f"Signup code {key} not found")
        return record

    def list_codes(
        self,
        *,
        created_by: str | None = None,
        active_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CodeRecord]:
        limit = min(max(1, int(limit)), 1000)
        offset = max(0, int(offset))
        try:
            return self.repository.list_codes(
                created_by=(created_by or "").strip() or None,
                active_only=active_only,
                limit=limit,
                offset=offset,
            )
        except StoreError as exc:
            raise LifecycleUnavailableError("Signup code store unavailable") from exc
