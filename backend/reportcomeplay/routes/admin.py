"""
Report Come Play Backend — Admin Routes
=========================================

What:  /api/admin: user management, payouts, dashboard stats and field
       verification. Every route requires the ADMIN role (router-level
       dependency), so a reporter gets 403 before any handler runs.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.database import get_db_session
from reportcomeplay.dependencies import require_admin
from reportcomeplay.models import PayoutStatus, Role
from reportcomeplay.schemas.admin import (
    AdminUserListResponse,
    AdminUserResponse,
    FieldVerifyRequest,
    PayoutCreateRequest,
    PayoutListResponse,
    PayoutMutationResponse,
    PayoutUpdateRequest,
    StatsResponse,
)
from reportcomeplay.schemas.common import ErrorResponse
from reportcomeplay.schemas.field import FieldMutationResponse
from reportcomeplay.services.admin_service import admin_service

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
    responses={403: {"description": "Admin role required", "model": ErrorResponse}},
)


# ── Users ─────────────────────────────────────────────────────────────────

@router.get("/users", response_model=AdminUserListResponse, summary="List users")
async def list_users(
    role: Optional[Role] = Query(default=None, description="Without it, admins are excluded"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> AdminUserListResponse:
    return await admin_service.list_users(db, role=role, page=page, limit=limit)


@router.get(
    "/users/{user_id}",
    response_model=AdminUserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> AdminUserResponse:
    return await admin_service.get_user(db, user_id)


# ── Payouts ───────────────────────────────────────────────────────────────

@router.get("/payouts", response_model=PayoutListResponse, summary="List payouts")
async def list_payouts(
    status: Optional[PayoutStatus] = Query(default=None),
    user_id: Optional[uuid.UUID] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> PayoutListResponse:
    return await admin_service.list_payouts(
        db, status=status, user_id=user_id, page=page, limit=limit
    )


@router.post(
    "/payouts",
    status_code=201,
    response_model=PayoutMutationResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
)
async def create_payout(
    body: PayoutCreateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> PayoutMutationResponse:
    payout = await admin_service.create_payout(db, body)
    return PayoutMutationResponse(message="Payout created successfully.", payout=payout)


@router.put(
    "/payouts/{payout_id}",
    response_model=PayoutMutationResponse,
    responses={404: {"description": "Payout not found", "model": ErrorResponse}},
)
async def update_payout(
    payout_id: uuid.UUID,
    body: PayoutUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> PayoutMutationResponse:
    payout = await admin_service.update_payout(db, payout_id, body)
    return PayoutMutationResponse(message="Payout updated successfully.", payout=payout)


# ── Dashboard ─────────────────────────────────────────────────────────────

@router.get("/stats", response_model=StatsResponse, summary="Dashboard statistics")
async def get_stats(db: AsyncSession = Depends(get_db_session)) -> StatsResponse:
    return await admin_service.get_stats(db)


# ── Field verification ────────────────────────────────────────────────────

@router.put(
    "/fields/{field_id}/verify",
    response_model=FieldMutationResponse,
    responses={
        400: {"description": "Status must be APPROVED or REJECTED", "model": ErrorResponse},
        404: {"description": "Field not found", "model": ErrorResponse},
    },
)
async def verify_field(
    field_id: uuid.UUID,
    body: FieldVerifyRequest,
    db: AsyncSession = Depends(get_db_session),
) -> FieldMutationResponse:
    field = await admin_service.verify_field(db, field_id, body.status)
    return FieldMutationResponse(
        message=f"Field {field.status.lower()} successfully.", field=field
    )
