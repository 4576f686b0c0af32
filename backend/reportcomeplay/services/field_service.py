"""
Report Come Play Backend — Field Service
==========================================

What:  Field listing, detail, creation (with duplicate detection), update
       and deletion.
Who:   /api/fields route handlers.

Creation Flow (POST /api/fields):
    ┌────────────┐    ┌──────────────┐    ┌──────────────┐    ┌────────────┐
    │ Normalize  │───▶│ Lock + read  │───▶│  Duplicate   │───▶│ 3 images?  │───▶ INSERT
    │ name/loc   │    │ all fields   │    │  detector    │    │            │
    └────────────┘    └──────────────┘    └──────────────┘    └────────────┘
                                              │ match             │ no
                                              ▼                   ▼
                                             409                 400

Concurrency:
    Two near-identical submissions arriving together would both read a
    snapshot without the other and both insert. On PostgreSQL the
    snapshot read happens under a transaction-scoped advisory lock
    (released at COMMIT/ROLLBACK by get_db_session), which serializes
    creations. Other dialects (SQLite in tests) run without the lock.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from reportcomeplay.config import settings
from reportcomeplay.exceptions import (
    DuplicateFieldError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from reportcomeplay.models import Field, FieldStatus, Report, Role, User
from reportcomeplay.schemas.common import Pagination, UserSummary, from_loaded
from reportcomeplay.schemas.field import (
    FieldCreateRequest,
    FieldDetailResponse,
    FieldListResponse,
    FieldReportItem,
    FieldResponse,
    FieldUpdateRequest,
)
from reportcomeplay.services.duplicate_detector import (
    FieldRecord,
    collapse_whitespace,
    detect_duplicate,
)

logger = logging.getLogger(__name__)

# Arbitrary application-wide key for pg_advisory_xact_lock
FIELD_CREATE_LOCK_KEY = 0x52435046

DETAIL_REPORT_LIMIT = 10


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


def _dialect_name(db: AsyncSession) -> Optional[str]:
    dialect = getattr(getattr(db, "bind", None), "dialect", None)
    return getattr(dialect, "name", None)


def _report_count_column():
    return (
        select(func.count(Report.id))
        .where(Report.field_id == Field.id)
        .correlate(Field)
        .scalar_subquery()
        .label("report_count")
    )


class FieldService:
    """
    Business logic for fields.

    Ownership rule (update/delete): the submitting user or any ADMIN.
    """

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_fields(
        self,
        db: AsyncSession,
        owner_id: Optional[uuid.UUID] = None,
        status: Optional[FieldStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> FieldListResponse:
        filters = []
        if owner_id is not None:
            filters.append(Field.owner_id == owner_id)
        if status is not None:
            filters.append(Field.status == status.value)

        total = (await db.execute(select(func.count(Field.id)).where(*filters))).scalar() or 0

        result = await db.execute(
            select(Field, _report_count_column())
            .where(*filters)
            .options(selectinload(Field.owner))
            .order_by(Field.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        fields = [
            from_loaded(FieldResponse, field, report_count=report_count)
            for field, report_count in result.all()
        ]
        return FieldListResponse(
            fields=fields,
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    async def get_field(self, db: AsyncSession, field_id: uuid.UUID) -> FieldDetailResponse:
        field = await self._get_or_404(db, field_id)

        report_count = (
            await db.execute(select(func.count(Report.id)).where(Report.field_id == field.id))
        ).scalar() or 0

        result = await db.execute(
            select(Report)
            .where(Report.field_id == field.id)
            .options(selectinload(Report.user))
            .order_by(Report.created_at.desc())
            .limit(DETAIL_REPORT_LIMIT)
        )
        reports = [
            FieldReportItem(
                id=report.id,
                content=report.content,
                status=report.status,
                created_at=report.created_at,
                user=UserSummary.model_validate(report.user),
            )
            for report in result.scalars().all()
        ]
        return from_loaded(
            FieldDetailResponse, field, report_count=report_count, reports=reports
        )

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_field(
        self, db: AsyncSession, user: User, data: FieldCreateRequest
    ) -> FieldResponse:
        """
        Creates a PENDING field owned by `user`.

        Raises:
            DuplicateFieldError: name or location is near an existing field (409)
            ValidationError: wrong number of images (400)
        """
        name = collapse_whitespace(data.name)
        location = collapse_whitespace(data.location)

        if settings.field_create_lock and _dialect_name(db) == "postgresql":
            await db.execute(
                text("SELECT pg_advisory_xact_lock(:key)"), {"key": FIELD_CREATE_LOCK_KEY}
            )

        rows = await db.execute(
            select(Field.id, Field.name, Field.location).order_by(Field.created_at)
        )
        existing = [FieldRecord(id=row.id, name=row.name, location=row.location) for row in rows]

        match = detect_duplicate(
            name, location, existing, threshold=settings.duplicate_similarity_threshold
        )
        if match is not None:
            logger.info(
                "Rejected duplicate field '%s' @ '%s' (matches %s)", name, location, match.id
            )
            raise DuplicateFieldError(match.id, match.name, match.location)

        required = settings.required_field_images
        if len(data.images) != required:
            raise ValidationError(
                f"Exactly {required} images are required.",
                field="images",
                context={"received": len(data.images)},
            )

        field = Field(
            name=name,
            location=location,
            description=_strip(data.description),
            surface_type=data.surface_type,
            field_size=data.field_size,
            availability=_strip(data.availability),
            contact_info=_strip(data.contact_info),
            latitude=data.latitude,
            longitude=data.longitude,
            images=list(data.images),
            status=FieldStatus.PENDING.value,
            owner_id=user.id,
        )
        db.add(field)
        await db.flush()
        logger.info("Field %s created by user %s", field.id, user.id)

        return from_loaded(
            FieldResponse, field, owner=UserSummary.model_validate(user), report_count=0
        )

    async def update_field(
        self,
        db: AsyncSession,
        user: User,
        field_id: uuid.UUID,
        data: FieldUpdateRequest,
    ) -> FieldResponse:
        field = await self._get_or_404(db, field_id)
        self._check_ownership(field, user, "update")

        if data.name is not None:
            field.name = collapse_whitespace(data.name)
        if data.location is not None:
            field.location = collapse_whitespace(data.location)
        if "description" in data.model_fields_set:
            field.description = data.description
        field.updated_at = datetime.now(timezone.utc)

        await db.flush()
        return from_loaded(FieldResponse, field)

    async def delete_field(self, db: AsyncSession, user: User, field_id: uuid.UUID) -> None:
        field = await self._get_or_404(db, field_id)
        self._check_ownership(field, user, "delete")
        await db.delete(field)
        await db.flush()
        logger.info("Field %s deleted by user %s", field_id, user.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_or_404(self, db: AsyncSession, field_id: uuid.UUID) -> Field:
        result = await db.execute(
            select(Field).where(Field.id == field_id).options(selectinload(Field.owner))
        )
        field = result.scalar_one_or_none()
        if field is None:
            raise NotFoundError(resource="field", resource_id=str(field_id))
        return field

    @staticmethod
    def _check_ownership(field: Field, user: User, action: str) -> None:
        if field.owner_id != user.id and user.role != Role.ADMIN.value:
            raise PermissionDeniedError(
                f"You can only {action} your own fields.",
                context={"field_id": str(field.id), "user_id": str(user.id)},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
field_service = FieldService()
