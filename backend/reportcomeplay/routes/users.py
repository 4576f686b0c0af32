"""
Report Come Play Backend — User Routes
========================================

What:  /api/users: the signed-in user's profile, reports, payouts and
       notification inbox.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.database import get_db_session
from reportcomeplay.dependencies import get_current_user
from reportcomeplay.models import User
from reportcomeplay.schemas.admin import NotificationResponse, PayoutResponse
from reportcomeplay.schemas.auth import ProfileUpdateRequest, UserResponse
from reportcomeplay.schemas.common import (
    ErrorResponse,
    MessageResponse,
    Pagination,
    from_loaded,
)
from reportcomeplay.schemas.field import ReportListResponse, ReportResponse
from reportcomeplay.services.notification_service import notification_service
from reportcomeplay.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse, summary="Own profile")
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put(
    "/profile",
    response_model=UserResponse,
    responses={400: {"description": "Wrong current password", "model": ErrorResponse}},
    summary="Update profile, bank details or password",
)
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return UserResponse.model_validate(await user_service.update_profile(db, user, body))


@router.get("/reports", response_model=ReportListResponse, summary="Own reports")
async def list_own_reports(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReportListResponse:
    reports, total = await user_service.list_reports(db, user, page=page, limit=limit)
    return ReportListResponse(
        reports=[from_loaded(ReportResponse, r) for r in reports],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/payouts", response_model=List[PayoutResponse], summary="Own payouts")
async def list_own_payouts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PayoutResponse]:
    payouts = await user_service.list_payouts(db, user)
    return [from_loaded(PayoutResponse, p) for p in payouts]


@router.get(
    "/notifications",
    response_model=List[NotificationResponse],
    summary="Latest 20 notifications",
)
async def list_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[NotificationResponse]:
    notifications = await notification_service.list_for_user(db, user.id)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.put(
    "/notifications/read-all",
    response_model=MessageResponse,
    summary="Mark every notification as read",
)
async def mark_all_notifications_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    count = await notification_service.mark_all_read(db, user.id)
    return MessageResponse(message=f"{count} notifications marked as read.")


@router.put(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    responses={404: {"description": "Not found or not yours", "model": ErrorResponse}},
    summary="Mark one notification as read",
)
async def mark_notification_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    notification = await notification_service.mark_read(db, user.id, notification_id)
    return NotificationResponse.model_validate(notification)
