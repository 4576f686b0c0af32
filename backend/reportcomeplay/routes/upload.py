"""
Report Come Play Backend — Upload & File Routes
=================================================

What:  POST /api/upload stores one field photo and returns its public URL.
       GET /api/files/{path} serves photos when the local backend is active.

Request Flow (upload):
    1. multipart/form-data with an `image` part (400 when missing)
    2. StorageService: extension → size → Pillow decode → backend.save()
    3. 201 {"success": true, "url": "..."}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel

from reportcomeplay.dependencies import get_current_user
from reportcomeplay.exceptions import NotFoundError, ValidationError
from reportcomeplay.models import User
from reportcomeplay.schemas.common import ErrorResponse
from reportcomeplay.services.storage_service import (
    CONTENT_TYPES,
    LocalStorageBackend,
    storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Upload"])


class UploadResponse(BaseModel):
    success: bool = True
    url: str


@router.post(
    "/upload",
    status_code=201,
    response_model=UploadResponse,
    responses={
        400: {"description": "Missing, oversized or invalid image", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        503: {"description": "Object storage unavailable", "model": ErrorResponse},
    },
    summary="Upload a field photo (PNG, JPG, JPEG, WEBP; max 5MB)",
)
async def upload_image(
    image: Optional[UploadFile] = File(default=None, description="Image file"),
    user: User = Depends(get_current_user),
) -> UploadResponse:
    if image is None:
        raise ValidationError("No image file provided.", field="image")

    try:
        content = await image.read()
        logger.info(
            "Upload from user %s: filename=%s, size=%d bytes",
            user.id,
            image.filename or "unknown",
            len(content),
        )
        url = await storage_service.validate_and_store(
            filename=image.filename or "",
            content=content,
            content_length=image.size,
        )
    finally:
        await image.close()

    return UploadResponse(url=url)


@router.get(
    "/files/{file_path:path}",
    responses={404: {"description": "File not found", "model": ErrorResponse}},
    summary="Serve a locally stored image",
)
async def serve_file(file_path: str) -> FileResponse:
    backend = storage_service.backend
    if not isinstance(backend, LocalStorageBackend):
        raise NotFoundError(resource="file", resource_id=file_path)

    path = backend.resolve(file_path)
    return FileResponse(
        path=str(path),
        media_type=CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream"),
        headers={"Cache-Control": "public, max-age=86400"},
    )
