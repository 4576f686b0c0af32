"""
Report Come Play Backend — Admin Service
==========================================

What:  Everything behind /api/admin: user management, payouts, field
       verification and the dashboard statistics.
Who:   /api/admin route handlers (ADMIN role only).

Notifications:
    Payout created as COMPLETED → "Payout Sent"
    Payout updated              → "Payout <Status>"   (always)
    Field verified              → "Field <Status>"
"""

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Set

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reportcomeplay.exceptions import NotFoundError, ValidationError
from reportcomeplay.models import (
    Field,
    FieldStatus,
    NotificationType,
    Payout,
    PayoutStatus,
    Report,
    ReportStatus,
    Role,
    User,
)
from reportcomeplay.schemas.admin import (
    AdminUserListResponse,
    AdminUserResponse,
    ChartPoint,
    FieldStats,
    PayoutCreateRequest,
    PayoutListResponse,
    PayoutResponse,
    PayoutStats,
    PayoutUpdateRequest,
    RecentField,
    ReportStats,
    StatsResponse,
    TopReporter,
    UserStats,
)
from reportcomeplay.schemas.common import Pagination, UserSummary, from_loaded
from reportcomeplay.schemas.field import FieldResponse
from reportcomeplay.services.notification_service import (
    format_naira,
    notification_service,
    status_word,
)

logger = logging.getLogger(__name__)

CHART_DAYS = 7
RECENT_FIELDS = 5
TOP_REPORTERS = 5

PAYOUT_NOTIFICATION_TYPES = {
    PayoutStatus.COMPLETED: NotificationType.SUCCESS,
    PayoutStatus.FAILED: NotificationType.ERROR,
    PayoutStatus.PENDING: NotificationType.INFO,
}


def _utc_day(value: datetime) -> date:
    """Calendar day in UTC; naive values (SQLite) are already UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def _count_column(model, foreign_key):
    return (
        select(func.count(model.id))
        .where(foreign_key == User.id)
        .correlate(User)
        .scalar_subquery()
    )


async def _count(db: AsyncSession, column, *filters) -> int:
    return (await db.execute(select(func.count(column)).where(*filters))).scalar() or 0


class AdminService:

    # ══════════════════════════════════════════════════════════════════════
    # Users
    # ══════════════════════════════════════════════════════════════════════

    def _users_with_counts(self):
        return select(
            User,
            _count_column(Report, Report.user_id).label("report_count"),
            _count_column(Field, Field.owner_id).label("field_count"),
            _count_column(Payout, Payout.user_id).label("payout_count"),
        )

    async def list_users(
        self,
        db: AsyncSession,
        role: Optional[Role] = None,
        page: int = 1,
        limit: int = 20,
    ) -> AdminUserListResponse:
        """With no role filter, admins are left out of the list."""
        if role is not None:
            condition = User.role == role.value
        else:
            condition = User.role != Role.ADMIN.value

        total = await _count(db, User.id, condition)
        result = await db.execute(
            self._users_with_counts()
            .where(condition)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        users = [
            from_loaded(
                AdminUserResponse,
                user,
                report_count=report_count,
                field_count=field_count,
                payout_count=payout_count,
            )
            for user, report_count, field_count, payout_count in result.all()
        ]
        return AdminUserListResponse(
            users=users,
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> AdminUserResponse:
        row = (
            await db.execute(self._users_with_counts().where(User.id == user_id))
        ).one_or_none()
        if row is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        user, report_count, field_count, payout_count = row
        return from_loaded(
            AdminUserResponse,
            user,
            report_count=report_count,
            field_count=field_count,
            payout_count=payout_count,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Payouts
    # ══════════════════════════════════════════════════════════════════════

    async def list_payouts(
        self,
        db: AsyncSession,
        status: Optional[PayoutStatus] = None,
        user_id: Optional[uuid.UUID] = None,
        page: int = 1,
        limit: int = 20,
    ) -> PayoutListResponse:
        filters = []
        if status is not None:
            filters.append(Payout.status == status.value)
        if user_id is not None:
            filters.append(Payout.user_id == user_id)

        total = await _count(db, Payout.id, *filters)
        result = await db.execute(
            select(Payout)
            .where(*filters)
            .options(selectinload(Payout.user))
            .order_by(Payout.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return PayoutListResponse(
            payouts=[from_loaded(PayoutResponse, p) for p in result.scalars().all()],
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    async def create_payout(self, db: AsyncSession, data: PayoutCreateRequest) -> PayoutResponse:
        user = await db.get(User, data.user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(data.user_id))

        completed = data.status == PayoutStatus.COMPLETED
        payout = Payout(
            user_id=user.id,
            amount=data.amount,
            status=data.status.value,
            receipt_url=data.receipt_url,
            processed_at=datetime.now(timezone.utc) if completed else None,
        )
        db.add(payout)
        await db.flush()
        logger.info("Payout %s of %.2f created for user %s", payout.id, payout.amount, user.id)

        if completed:
            await notification_service.notify(
                db,
                user_id=user.id,
                title="Payout Sent",
                message=f"You have received a payout of {format_naira(payout.amount)}.",
                type=NotificationType.SUCCESS,
            )

        return from_loaded(PayoutResponse, payout, user=UserSummary.model_validate(user))

    async def update_payout(
        self, db: AsyncSession, payout_id: uuid.UUID, data: PayoutUpdateRequest
    ) -> PayoutResponse:
        result = await db.execute(
            select(Payout).where(Payout.id == payout_id).options(selectinload(Payout.user))
        )
        payout = result.scalar_one_or_none()
        if payout is None:
            raise NotFoundError(resource="payout", resource_id=str(payout_id))

        payout.status = data.status.value
        if data.receipt_url is not None:
            payout.receipt_url = data.receipt_url
        if data.status == PayoutStatus.COMPLETED:
            payout.processed_at = datetime.now(timezone.utc)
        payout.updated_at = datetime.now(timezone.utc)
        await db.flush()

        word = status_word(data.status.value)
        await notification_service.notify(
            db,
            user_id=payout.user_id,
            title=f"Payout {word}",
            message=(
                f"Your payout request of {format_naira(payout.amount)} "
                f"has been {word.lower()}."
            ),
            type=PAYOUT_NOTIFICATION_TYPES[data.status],
        )
        return from_loaded(PayoutResponse, payout)

    # ══════════════════════════════════════════════════════════════════════
    # Field verification
    # ══════════════════════════════════════════════════════════════════════

    async def verify_field(
        self, db: AsyncSession, field_id: uuid.UUID, status: str
    ) -> FieldResponse:
        if status not in (FieldStatus.APPROVED.value, FieldStatus.REJECTED.value):
            raise ValidationError(
                "Invalid status. Must be APPROVED or REJECTED.", field="status"
            )

        result = await db.execute(
            select(Field).where(Field.id == field_id).options(selectinload(Field.owner))
        )
        field = result.scalar_one_or_none()
        if field is None:
            raise NotFoundError(resource="field", resource_id=str(field_id))

        field.status = status
        field.updated_at = datetime.now(timezone.utc)
        await db.flush()

        word = status_word(status)
        await notification_service.notify(
            db,
            user_id=field.owner_id,
            title=f"Field {word}",
            message=f'Your field submission "{field.name}" has been {word.lower()} by administration.',
            type=NotificationType.SUCCESS if status == FieldStatus.APPROVED.value else NotificationType.ERROR,
        )
        logger.info("Field %s marked %s", field.id, status)
        return from_loaded(FieldResponse, field)

    # ══════════════════════════════════════════════════════════════════════
    # Dashboard
    # ══════════════════════════════════════════════════════════════════════

    async def get_stats(self, db: AsyncSession, today: Optional[date] = None) -> StatsResponse:
        """
        Aggregate counts plus a 7-day activity chart.

        Chart days are UTC calendar days ending with `today`:
            submissions   fields created that day
            new_users     non-admin accounts created that day
            active_users  distinct users who created a field or report that day
        """
        today = today or datetime.now(timezone.utc).date()
        first_day = today - timedelta(days=CHART_DAYS - 1)
        window_start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

        not_admin = User.role != Role.ADMIN.value
        pending_amount = (
            await db.execute(
                select(func.coalesce(func.sum(Payout.amount), 0.0)).where(
                    Payout.status == PayoutStatus.PENDING.value
                )
            )
        ).scalar() or 0.0

        users = UserStats(
            total=await _count(db, User.id, not_admin),
            reporters=await _count(db, User.id, User.role == Role.REPORTER.value),
            owners=await _count(db, User.id, User.role == Role.OWNER.value),
        )
        fields = FieldStats(
            total=await _count(db, Field.id),
            pending=await _count(db, Field.id, Field.status == FieldStatus.PENDING.value),
            approved=await _count(db, Field.id, Field.status == FieldStatus.APPROVED.value),
        )
        reports = ReportStats(
            total=await _count(db, Report.id),
            pending=await _count(db, Report.id, Report.status == ReportStatus.PENDING.value),
        )
        payouts = PayoutStats(
            total=await _count(db, Payout.id),
            pending=await _count(db, Payout.id, Payout.status == PayoutStatus.PENDING.value),
            pending_amount=float(pending_amount),
        )

        # ── 7-day chart ───────────────────────────────────────────────────
        submissions: Dict[date, int] = defaultdict(int)
        new_users: Dict[date, int] = defaultdict(int)
        active: Dict[date, Set[uuid.UUID]] = defaultdict(set)

        field_rows = await db.execute(
            select(Field.created_at, Field.owner_id).where(Field.created_at >= window_start)
        )
        for created_at, owner_id in field_rows.all():
            day = _utc_day(created_at)
            submissions[day] += 1
            active[day].add(owner_id)

        report_rows = await db.execute(
            select(Report.created_at, Report.user_id).where(Report.created_at >= window_start)
        )
        for created_at, user_id in report_rows.all():
            active[_utc_day(created_at)].add(user_id)

        user_rows = await db.execute(
            select(User.created_at).where(User.created_at >= window_start, not_admin)
        )
        for (created_at,) in user_rows.all():
            new_users[_utc_day(created_at)] += 1

        chart: List[ChartPoint] = []
        for offset in range(CHART_DAYS):
            day = first_day + timedelta(days=offset)
            chart.append(
                ChartPoint(
                    day=day,
                    submissions=submissions[day],
                    new_users=new_users[day],
                    active_users=len(active[day]),
                )
            )

        # ── Recent activity ───────────────────────────────────────────────
        recent_result = await db.execute(
            select(Field)
            .options(selectinload(Field.owner))
            .order_by(Field.created_at.desc())
            .limit(RECENT_FIELDS)
        )
        recent_fields = [
            RecentField(
                id=f.id,
                name=f.name,
                location=f.location,
                status=f.status,
                created_at=f.created_at,
                owner=UserSummary.model_validate(f.owner),
            )
            for f in recent_result.scalars().all()
        ]

        # ── Top reporters by approved fields ──────────────────────────────
        approved_count = func.count(Field.id).label("approved")
        top_rows = (
            await db.execute(
                select(Field.owner_id, approved_count)
                .where(Field.status == FieldStatus.APPROVED.value)
                .group_by(Field.owner_id)
                .order_by(approved_count.desc())
                .limit(TOP_REPORTERS)
            )
        ).all()

        top_reporters: List[TopReporter] = []
        for owner_id, approved in top_rows:
            owner = await db.get(User, owner_id)
            if owner is None:
                continue
            top_reporters.append(
                TopReporter(
                    id=owner.id,
                    full_name=owner.full_name,
                    email=owner.email,
                    total_fields=await _count(db, Field.id, Field.owner_id == owner.id),
                    approved_fields=approved,
                )
            )

        return StatsResponse(
            users=users,
            fields=fields,
            reports=reports,
            payouts=payouts,
            chart=chart,
            recent_fields=recent_fields,
            top_reporters=top_reporters,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
admin_service = AdminService()
