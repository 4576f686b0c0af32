"""
Report Come Play Backend — Authentication Service
===================================================

What:  Registration, login, email verification and code re-sending.
Who:   /api/auth route handlers.

Registration Flow:
    ┌───────────┐    ┌─────────────────┐    ┌──────────────┐    ┌───────────┐
    │  Lookup   │───▶│ Create / Upsert │───▶│ Email code   │───▶│ Issue JWT │
    │  email    │    │ (unverified)    │    │ (best effort)│    │           │
    └───────────┘    └─────────────────┘    └──────────────┘    └───────────┘

    - A verified account owns its email for good → 409
    - An unverified account is overwritten by the newer registration, so a
      user who lost the first code can simply register again
    - Emails are stored lower-cased; lookups use the same normalization
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from reportcomeplay.models import User
from reportcomeplay.schemas.auth import RegisterRequest
from reportcomeplay.security import (
    create_access_token,
    generate_verification_code,
    hash_password,
    verify_password,
)
from reportcomeplay.services.email_service import email_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def register(self, db: AsyncSession, data: RegisterRequest) -> Tuple[User, str]:
        """
        Creates (or re-issues) an unverified account and emails its code.

        Returns:
            (user, access_token)

        Raises:
            ConflictError: a verified account already uses this email
        """
        email = normalize_email(data.email)
        code = generate_verification_code()
        password_hash = hash_password(data.password)

        user = await self.get_by_email(db, email)
        if user is not None and user.email_verified:
            raise ConflictError("User with this email already exists.", context={"email": email})

        if user is None:
            user = User(
                email=email,
                password_hash=password_hash,
                full_name=data.full_name,
                role=data.role.value,
                phone_number=data.phone_number,
                email_verified=False,
                verification_code=code,
            )
            db.add(user)
            logger.info("Registering new %s account: %s", data.role.value, email)
        else:
            user.password_hash = password_hash
            user.full_name = data.full_name
            user.role = data.role.value
            user.phone_number = data.phone_number
            user.verification_code = code
            user.updated_at = datetime.now(timezone.utc)
            logger.info("Re-registering unverified account: %s", email)

        await db.flush()

        await email_service.send_verification_email(email, user.full_name, code)

        return user, create_access_token(user.id, user.role)

    async def login(self, db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        user = await self.get_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", normalize_email(email))
            raise AuthenticationError(INVALID_CREDENTIALS)
        return user, create_access_token(user.id, user.role)

    async def verify_email(self, db: AsyncSession, user_id: uuid.UUID, code: str) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        if user.email_verified:
            return user
        if not user.verification_code or user.verification_code != code.strip():
            raise ValidationError("Invalid verification code.", field="code")

        user.email_verified = True
        user.verification_code = None
        user.updated_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Email verified for user %s", user.id)
        return user

    async def resend_verification(self, db: AsyncSession, email: str) -> None:
        """
        Issues a fresh code to an unverified account.

        Unknown emails return silently so the endpoint cannot be used to
        probe which addresses are registered.
        """
        user = await self.get_by_email(db, email)
        if user is None:
            logger.info("Verification resend requested for unknown email")
            return
        if user.email_verified:
            raise ValidationError("Email is already verified.", field="email")

        code = generate_verification_code()
        user.verification_code = code
        user.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await email_service.send_verification_email(user.email, user.full_name, code)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
