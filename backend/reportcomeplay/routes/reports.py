"""
Report Come Play Backend — Report Routes
==========================================

What:  /api/reports CRUD. Non-admins only see and touch their own reports.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.database import get_db_session
from reportcomeplay.dependencies import get_current_user
from reportcomeplay.models import ReportStatus, User
from reportcomeplay.schemas.common import ErrorResponse, MessageResponse
from reportcomeplay.schemas.field import (
    ReportCreateRequest,
    ReportListResponse,
    ReportMutationResponse,
    ReportResponse,
    ReportUpdateRequest,
)
from reportcomeplay.services.report_service import report_service

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("", response_model=ReportListResponse, summary="List reports")
async def list_reports(
    status: Optional[ReportStatus] = Query(default=None),
    field_id: Optional[uuid.UUID] = Query(default=None),
    user_id: Optional[uuid.UUID] = Query(default=None, description="Admins only"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReportListResponse:
    return await report_service.list_reports(
        db,
        user,
        status=status,
        field_id=field_id,
        user_id=user_id,
        page=page,
        limit=limit,
    )


@router.get(
    "/{report_id}",
    response_model=ReportResponse,
    responses={404: {"description": "Report not found", "model": ErrorResponse}},
)
async def get_report(
    report_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReportResponse:
    return await report_service.get_report(db, report_id)


@router.post(
    "",
    status_code=201,
    response_model=ReportMutationResponse,
    responses={
        404: {"description": "Field not found", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    },
    summary="File a report about a field",
)
async def create_report(
    body: ReportCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReportMutationResponse:
    report = await report_service.create_report(db, user, body)
    return ReportMutationResponse(message="Report created successfully.", report=report)


@router.put(
    "/{report_id}",
    response_model=ReportMutationResponse,
    responses={
        403: {"description": "Not your report", "model": ErrorResponse},
        404: {"description": "Report not found", "model": ErrorResponse},
    },
)
async def update_report(
    report_id: uuid.UUID,
    body: ReportUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReportMutationResponse:
    report = await report_service.update_report(db, user, report_id, body)
    return ReportMutationResponse(message="Report updated successfully.", report=report)


@router.delete(
    "/{report_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Not your report", "model": ErrorResponse},
        404: {"description": "Report not found", "model": ErrorResponse},
    },
)
async def delete_report(
    report_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await report_service.delete_report(db, user, report_id)
    return MessageResponse(message="Report deleted successfully.")
