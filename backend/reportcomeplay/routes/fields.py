"""
Report Come Play Backend — Field Routes
=========================================

What:  /api/fields CRUD.
Who:   Reporters and owners submitting fields; everyone browsing them.

POST runs the duplicate detector before anything is written (409 on a
near-duplicate) and then requires exactly three images (400). The
"submission" rate-limit policy covers it.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.database import get_db_session
from reportcomeplay.dependencies import get_current_user, require_owner, require_reporter
from reportcomeplay.models import FieldStatus, User
from reportcomeplay.schemas.common import ErrorResponse, MessageResponse
from reportcomeplay.schemas.field import (
    FieldCreateRequest,
    FieldDetailResponse,
    FieldListResponse,
    FieldMutationResponse,
    FieldUpdateRequest,
)
from reportcomeplay.services.field_service import field_service

router = APIRouter(prefix="/api/fields", tags=["Fields"])


@router.get("", response_model=FieldListResponse, summary="List fields")
async def list_fields(
    owner_id: Optional[uuid.UUID] = Query(default=None),
    status: Optional[FieldStatus] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FieldListResponse:
    """Newest first, each with its owner summary and report count."""
    return await field_service.list_fields(
        db, owner_id=owner_id, status=status, page=page, limit=limit
    )


@router.get(
    "/{field_id}",
    response_model=FieldDetailResponse,
    responses={404: {"description": "Field not found", "model": ErrorResponse}},
    summary="Field detail with its 10 latest reports",
)
async def get_field(
    field_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FieldDetailResponse:
    return await field_service.get_field(db, field_id)


@router.post(
    "",
    status_code=201,
    response_model=FieldMutationResponse,
    responses={
        400: {"description": "Invalid input or wrong image count", "model": ErrorResponse},
        409: {"description": "Near-duplicate of an existing field", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    },
    summary="Submit a new field",
)
async def create_field(
    body: FieldCreateRequest,
    user: User = Depends(require_reporter),
    db: AsyncSession = Depends(get_db_session),
) -> FieldMutationResponse:
    field = await field_service.create_field(db, user, body)
    return FieldMutationResponse(message="Field submitted successfully.", field=field)


@router.put(
    "/{field_id}",
    response_model=FieldMutationResponse,
    responses={
        403: {"description": "Not your field", "model": ErrorResponse},
        404: {"description": "Field not found", "model": ErrorResponse},
    },
    summary="Update name, location or description",
)
async def update_field(
    field_id: uuid.UUID,
    body: FieldUpdateRequest,
    user: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> FieldMutationResponse:
    field = await field_service.update_field(db, user, field_id, body)
    return FieldMutationResponse(message="Field updated successfully.", field=field)


@router.delete(
    "/{field_id}",
    response_model=MessageResponse,
    responses={
        403: {"description": "Not your field", "model": ErrorResponse},
        404: {"description": "Field not found", "model": ErrorResponse},
    },
    summary="Delete a field and its reports",
)
async def delete_field(
    field_id: uuid.UUID,
    user: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await field_service.delete_field(db, user, field_id)
    return MessageResponse(message="Field deleted successfully.")
