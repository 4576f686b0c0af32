"""
Report Come Play Backend — User Profile Service
=================================================

What:  The signed-in user's own data: profile and bank details, password
       change, own reports and own payouts.
Who:   /api/users route handlers.
"""

import logging
from datetime import datetime, timezone
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reportcomeplay.exceptions import ValidationError
from reportcomeplay.models import Payout, Report, User
from reportcomeplay.schemas.auth import ProfileUpdateRequest
from reportcomeplay.security import hash_password, verify_password

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "phone_number", "bank_name", "account_number", "account_name")


class UserService:

    async def update_profile(
        self, db: AsyncSession, user: User, data: ProfileUpdateRequest
    ) -> User:
        """
        Applies the keys present in the request body.

        A password change needs both current_password (checked against the
        stored hash) and new_password.

        Raises:
            ValidationError: missing or wrong current password
        """
        provided = data.model_fields_set

        for name in PROFILE_FIELDS:
            if name not in provided:
                continue
            value = getattr(data, name)
            if name == "full_name":
                if value is None or not value.strip():
                    continue
                value = value.strip()
            setattr(user, name, value)

        if data.new_password:
            if not data.current_password:
                raise ValidationError(
                    "Current password is required to set a new password.",
                    field="current_password",
                )
            if not verify_password(data.current_password, user.password_hash):
                raise ValidationError("Current password is incorrect.", field="current_password")
            user.password_hash = hash_password(data.new_password)
            logger.info("Password changed for user %s", user.id)

        user.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return user

    async def list_reports(
        self, db: AsyncSession, user: User, page: int = 1, limit: int = 10
    ) -> Tuple[List[Report], int]:
        total = (
            await db.execute(select(func.count(Report.id)).where(Report.user_id == user.id))
        ).scalar() or 0

        result = await db.execute(
            select(Report)
            .where(Report.user_id == user.id)
            .options(selectinload(Report.field))
            .order_by(Report.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_payouts(self, db: AsyncSession, user: User) -> List[Payout]:
        result = await db.execute(
            select(Payout)
            .where(Payout.user_id == user.id)
            .order_by(Payout.created_at.desc())
        )
        return list(result.scalars().all())


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
