"""Domain helpers for signup-code format, normalisation and eligibility."""
from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_PATTERN = re.compile(r"[A-Z0-9]{6}")


@dataclass(frozen=True)
class CodeRecord:
    """Detached snapshot of a signup code row."""

    code: str
    max_usages: int
    current_usages: int
    is_active: bool
    created_by: str
    expires_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @property
    def remaining_usages(self) -> int:
        return max(0, self.max_usages - self.current_usages)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    def is_eligible(self, now: datetime | None = None) -> bool:
        return self.is_active and not self.is_expired(now) and self.current_usages < self.max_usages


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime | None) -> datetime | None:
    """Normalize aware datetimes to UTC; naive values are taken as UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_code(value: str | None) -> str:
    return (value or "").strip().upper()


def is_valid_code(value: str | None) -> bool:
    """Return True when value is exactly six ASCII letters/digits (case-insensitive)."""
    if not value:
        return False
    return bool(CODE_PATTERN.fullmatch(normalize_code(value)))


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def mask_code(code: str | None) -> str:
    value = normalize_code(code)
    if len(value) <= 2:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 2)
