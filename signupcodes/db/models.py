"""SQLAlchemy models for signup codes."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    func,
)

from .session import Base


class SignupCode(Base):
    __tablename__ = "signup_codes"
    __table_args__ = (
        CheckConstraint("max_usages >= 1", name="ck_signup_codes_max_usages_positive"),
        CheckConstraint("current_usages >= 0", name="ck_signup_codes_current_usages_non_negative"),
        Index("ix_signup_codes_code_active", "code", "is_active"),
    )

    code = Column(String(6), primary_key=True)
    max_usages = Column(Integer, nullable=False)
    current_usages = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(255), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
