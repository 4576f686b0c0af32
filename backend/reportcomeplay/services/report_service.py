"""
Report Come Play Backend — Report Service
===========================================

What:  CRUD for written reports about fields.
Who:   /api/reports route handlers.

Visibility & permissions:
    - Non-admins only ever see their own reports; admins see all and may
      filter by user_id
    - Author or ADMIN may edit content and delete
    - Only an ADMIN's status is applied (a reporter's status is ignored);
      an admin status change notifies the author
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reportcomeplay.exceptions import NotFoundError, PermissionDeniedError
from reportcomeplay.models import (
    Field,
    NotificationType,
    Report,
    ReportStatus,
    Role,
    User,
)
from reportcomeplay.schemas.common import Pagination, from_loaded
from reportcomeplay.schemas.field import (
    ReportCreateRequest,
    ReportListResponse,
    ReportResponse,
    ReportUpdateRequest,
)
from reportcomeplay.services.notification_service import notification_service, status_word

logger = logging.getLogger(__name__)

STATUS_NOTIFICATION_TYPES = {
    ReportStatus.APPROVED: NotificationType.SUCCESS,
    ReportStatus.REJECTED: NotificationType.ERROR,
    ReportStatus.PENDING: NotificationType.INFO,
}


class ReportService:

    async def list_reports(
        self,
        db: AsyncSession,
        user: User,
        status: Optional[ReportStatus] = None,
        field_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReportListResponse:
        filters = []
        if user.role != Role.ADMIN.value:
            filters.append(Report.user_id == user.id)
        elif user_id is not None:
            filters.append(Report.user_id == user_id)
        if status is not None:
            filters.append(Report.status == status.value)
        if field_id is not None:
            filters.append(Report.field_id == field_id)

        total = (await db.execute(select(func.count(Report.id)).where(*filters))).scalar() or 0

        result = await db.execute(
            select(Report)
            .where(*filters)
            .options(selectinload(Report.user), selectinload(Report.field))
            .order_by(Report.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return ReportListResponse(
            reports=[from_loaded(ReportResponse, r) for r in result.scalars().all()],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    async def get_report(self, db: AsyncSession, report_id: uuid.UUID) -> ReportResponse:
        return from_loaded(ReportResponse, await self._get_or_404(db, report_id))

    async def create_report(
        self, db: AsyncSession, user: User, data: ReportCreateRequest
    ) -> ReportResponse:
        field = await db.get(Field, data.field_id)
        if field is None:
            raise NotFoundError(resource="field", resource_id=str(data.field_id))

        report = Report(
            content=data.content,
            field_id=field.id,
            user_id=user.id,
            status=ReportStatus.PENDING.value,
        )
        db.add(report)
        await db.flush()
        logger.info("Report %s filed on field %s by user %s", report.id, field.id, user.id)
        return from_loaded(ReportResponse, report, field=field, user=user)

    async def update_report(
        self,
        db: AsyncSession,
        user: User,
        report_id: uuid.UUID,
        data: ReportUpdateRequest,
    ) -> ReportResponse:
        report = await self._get_or_404(db, report_id)
        is_admin = user.role == Role.ADMIN.value
        if not is_admin and report.user_id != user.id:
            raise PermissionDeniedError("You can only edit your own reports.")

        if data.content is not None:
            report.content = data.content
        status_changed = data.status is not None and is_admin
        if status_changed:
            report.status = data.status.value
        report.updated_at = datetime.now(timezone.utc)
        await db.flush()

        if status_changed:
            word = status_word(data.status.value)
            await notification_service.notify(
                db,
                user_id=report.user_id,
                title=f"Report {word}",
                message=f'Your report for "{report.field.name}" has been {word.lower()}.',
                type=STATUS_NOTIFICATION_TYPES[data.status],
            )

        return from_loaded(ReportResponse, report)

    async def delete_report(self, db: AsyncSession, user: User, report_id: uuid.UUID) -> None:
        report = await self._get_or_404(db, report_id)
        if user.role != Role.ADMIN.value and report.user_id != user.id:
            raise PermissionDeniedError("You can only delete your own reports.")
        await db.delete(report)
        await db.flush()

    async def _get_or_404(self, db: AsyncSession, report_id: uuid.UUID) -> Report:
        result = await db.execute(
            select(Report)
            .where(Report.id == report_id)
            .options(selectinload(Report.user), selectinload(Report.field))
        )
        report = result.scalar_one_or_none()
        if report is None:
            raise NotFoundError(resource="report", resource_id=str(report_id))
        return report


# ── Singleton Instance ────────────────────────────────────────────────────
report_service = ReportService()
