"""
Report Come Play Backend — User SQLAlchemy Models
===================================================

What:  ORM models for the `users` and `admin_profiles` tables.
Who:   AuthService (register/login), UserService (profile, bank details),
       AdminService (user management, payouts) and the seed script.

Table Design:
    - UUID primary key: non-sequential, safe to expose in URLs
    - email: unique; registration upserts over unverified rows only
    - password_hash: bcrypt hash, never serialized by any schema
    - role: REPORTER | OWNER | ADMIN, stored as a short string
    - bank_* / account_*: where payouts are sent
    - verification_code: 6-digit email code, cleared once verified
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reportcomeplay.database import Base
from reportcomeplay.models.enums import Role


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered account: reporter, field owner or administrator.

    Lifecycle:
        1. Created by /api/auth/register (email_verified = False, code issued)
        2. Re-registration while unverified overwrites the row and issues a new code
        3. /api/auth/verify-email flips email_verified and clears the code
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.REPORTER.value)
    phone_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # ── Payout Details ────────────────────────────────────────────────────
    bank_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    account_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Email Verification ────────────────────────────────────────────────
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verification_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    owned_fields: Mapped[List["Field"]] = relationship(  # noqa: F821
        back_populates="owner", cascade="all, delete-orphan"
    )
    reports: Mapped[List["Report"]] = relationship(  # noqa: F821
        back_populates="user", cascade="all, delete-orphan"
    )
    payouts: Mapped[List["Payout"]] = relationship(  # noqa: F821
        back_populates="user", cascade="all, delete-orphan"
    )
    notifications: Mapped[List["Notification"]] = relationship(  # noqa: F821
        back_populates="user", cascade="all, delete-orphan"
    )
    admin_profile: Mapped[Optional["AdminProfile"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", uselist=False
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class AdminProfile(Base):
    """Extra record for ADMIN users; permissions is a free-form JSON grant map."""

    __tablename__ = "admin_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    permissions: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[User] = relationship(back_populates="admin_profile")
