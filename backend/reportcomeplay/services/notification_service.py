"""
Report Come Play Backend — In-App Notifications
=================================================

What:  Creates Notification rows and reads/marks them for their owner.
Who:   ReportService (admin status change), AdminService (payouts, field
       verification) and UserService (notification inbox).
"""

import logging
import uuid
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.exceptions import NotFoundError
from reportcomeplay.models import Notification, NotificationType

logger = logging.getLogger(__name__)

INBOX_SIZE = 20


def status_word(status: str) -> str:
    """'APPROVED' → 'Approved'."""
    return status.capitalize()


def format_naira(amount: float) -> str:
    """5000 → '₦5,000'; 1250.5 → '₦1,250.5'."""
    return "₦" + f"{amount:,.2f}".rstrip("0").rstrip(".")


class NotificationService:

    async def notify(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type.value,
            read=False,
        )
        db.add(notification)
        await db.flush()
        logger.info("Notification '%s' queued for user %s", title, user_id)
        return notification

    async def list_for_user(self, db: AsyncSession, user_id: uuid.UUID) -> List[Notification]:
        result = await db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(INBOX_SIZE)
        )
        return list(result.scalars().all())

    async def mark_read(
        self, db: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID
    ) -> Notification:
        notification = await db.get(Notification, notification_id)
        # Someone else's notification is reported exactly like a missing one
        if notification is None or notification.user_id != user_id:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))
        notification.read = True
        await db.flush()
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        return result.rowcount or 0


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
