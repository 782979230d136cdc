"""Signup-code record store backed by SQLAlchemy."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, TimeoutError as PoolTimeoutError

from signupcodes.db.models import SignupCode
from signupcodes.db.session import get_session
from signupcodes.domain.codes import CodeRecord, to_utc, utcnow

ADMIN_FIELDS = ("max_usages", "is_active", "expires_at")


class StoreError(Exception):
    """Base class for record store failures."""


class DuplicateCodeError(StoreError):
    """Raised when inserting a code that already exists."""


class StoreUnavailableError(StoreError):
    """Raised when the database cannot be reached or the call timed out."""


def _to_record(entity: SignupCode) -> CodeRecord:
    return CodeRecord(
        code=entity.code,
        max_usages=int(entity.max_usages),
        current_usages=int(entity.current_usages or 0),
        is_active=bool(entity.is_active),
        created_by=entity.created_by,
        expires_at=to_utc(entity.expires_at),
        created_at=to_utc(entity.created_at),
        updated_at=to_utc(entity.updated_at),
    )


def _not_expired(now: datetime):
    return or_(SignupCode.expires_at.is_(None), SignupCode.expires_at > now)


class SignupCodeRepository:
    """Store operations the redemption engine and lifecycle manager depend on.

    Every method opens its own short session. Results are returned as
    ``CodeRecord`` snapshots so no ORM instance outlives its session.
    """

    @contextmanager
    def _session(self) -> Iterator:
        try:
            with get_session() as session:
                yield session
        except IntegrityError as exc:
            raise StoreError(str(exc)) from exc
        except (OperationalError, PoolTimeoutError) as exc:
            raise StoreUnavailableError(str(exc)) from exc
        except DBAPIError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    # -------------------------- reads --------------------------
    def get(self, code: str) -> Optional[CodeRecord]:
        with self._session() as session:
            entity = session.get(SignupCode, code)
            return _to_record(entity) if entity else None

    def find_eligible(self, code: str) -> Optional[CodeRecord]:
        now = utcnow()
        stmt = select(SignupCode).where(
            SignupCode.code == code,
            SignupCode.is_active.is_(True),
            SignupCode.current_usages < SignupCode.max_usages,
            _not_expired(now),
        )
        with self._session() as session:
            entity = session.execute(stmt).scalar_one_or_none()
            return _to_record(entity) if entity else None

    def list_codes(
        self,
        *,
        created_by: str | None = None,
        active_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CodeRecord]:
        stmt = select(SignupCode)
        if created_by:
            stmt = stmt.where(SignupCode.created_by == created_by)
        if active_only:
            stmt = stmt.where(SignupCode.is_active.is_(True))
        stmt = stmt.order_by(SignupCode.created_at.desc(), SignupCode.code.asc()).offset(offset).limit(limit)
        with self._session() as session:
            return [_to_record(entity) for entity in session.execute(stmt).scalars().all()]

    # -------------------------- writes --------------------------
    def create(self, record: CodeRecord) -> CodeRecord:
        now = utcnow()
        entity = SignupCode(
            code=record.code,
            max_usages=int(record.max_usages),
            current_usages=int(record.current_usages or 0),
            is_active=bool(record.is_active),
            created_by=record.created_by,
            expires_at=to_utc(record.expires_at),
            created_at=now,
            updated_at=now,
        )
        with self._session() as session:
            session.add(entity)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateCodeError(record.code) from exc
            session.refresh(entity)
            return _to_record(entity)

    def conditional_increment(self, code: str, expected_max_usages: int) -> Optional[CodeRecord]:
        """Add one usage only if the code is still eligible at write time.

        Capacity is checked against both the caller's view of ``max_usages``
        and the stored column, inside the same UPDATE statement.
        """
        now = utcnow()
        stmt = (
            update(SignupCode)
            .where(
                SignupCode.code == code,
                SignupCode.is_active.is_(True),
                SignupCode.current_usages < int(expected_max_usages),
                SignupCode.current_usages < SignupCode.max_usages,
                _not_expired(now),
            )
            .values(current_usages=SignupCode.current_usages + 1, updated_at=now)
            .returning(SignupCode)
            .execution_options(synchronize_session=False)
        )
        with self._session() as session:
            entity = session.execute(stmt).scalar_one_or_none()
            record = _to_record(entity) if entity else None
            session.commit()
            return record

    def deactivate(self, code: str, *, only_if_exhausted: bool = False) -> bool:
        """Set is_active to False; returns True when a row matched."""
        stmt = update(SignupCode).where(SignupCode.code == code)
        if only_if_exhausted:
            stmt = stmt.where(SignupCode.current_usages >= SignupCode.max_usages)
        stmt = stmt.values(is_active=False, updated_at=utcnow()).execution_options(synchronize_session=False)
        with self._session() as session:
            result = session.execute(stmt)
            session.commit()
            return (result.rowcount or 0) > 0

    def update_admin(self, code: str, values: dict) -> Optional[CodeRecord]:
        """Plain administrative update; not coordinated with redemptions."""
        changes = {key: values[key] for key in ADMIN_FIELDS if key in values}
        if "expires_at" in changes:
            changes["expires_at"] = to_utc(changes["expires_at"])
        if not changes:
            return self.get(code)
        changes["updated_at"] = utcnow()
        stmt = (
            update(SignupCode)
            .where(SignupCode.code == code)
            .values(**changes)
            .returning(SignupCode)
            .execution_options(synchronize_session=False)
        )
        with self._session() as session:
            entity = session.execute(stmt).scalar_one_or_none()
            record = _to_record(entity) if entity else None
            session.commit()
            return record
