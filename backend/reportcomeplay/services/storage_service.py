"""
Report Come Play Backend — Image Upload & Storage Service
===========================================================

What:  Validates uploaded field photos and stores them in object storage.
How:   Extension → size → decoded content (Pillow), then the bytes go to the
       configured backend under `uploads/<uuid><ext>` and a public URL comes back.
Who:   POST /api/upload; GET /api/files/{path} for the local backend.

Backends:
    local     Files under settings.storage_root, served by the API itself at
              /api/files/<key>. Default for development and tests.
    supabase  Supabase Storage REST API with a public bucket
              (settings.supabase_bucket, "field-images" by default).

Security Model:
    1. Extension check:  fast rejection of obviously wrong uploads
    2. Size check:       Content-Length first, then the actual byte count
    3. Content check:    Pillow must identify and verify the bytes as an image
                         whose format agrees with the extension
    4. UUID key:         no user input reaches the storage path
"""

import io
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from PIL import Image, UnidentifiedImageError

from reportcomeplay.config import settings
from reportcomeplay.exceptions import (
    ExternalServiceError,
    FileStorageError,
    NotFoundError,
    ValidationError,
)
from reportcomeplay.services.resilience import build_circuit_breaker, outbound_retry

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

# Pillow format name → extensions it may arrive under
FORMAT_EXTENSIONS = {
    "PNG": {".png"},
    "JPEG": {".jpg", ".jpeg"},
    "WEBP": {".webp"},
}

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}

UPLOAD_PREFIX = "uploads"


# ══════════════════════════════════════════════════════════════════════════
# Storage Backends
# ══════════════════════════════════════════════════════════════════════════

class StorageBackend(ABC):
    """Where validated bytes end up. Implementations return a public URL."""

    name: str = "abstract"

    @abstractmethod
    async def save(self, key: str, content: bytes, content_type: str) -> str:
        ...


class LocalStorageBackend(StorageBackend):
    """Filesystem storage rooted at `root`; URLs point back at this API."""

    name = "local"

    def __init__(self, root: Optional[str] = None, public_base: str = "/api/files"):
        self.root = Path(root or settings.storage_root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base = public_base.rstrip("/")

    def resolve(self, key: str) -> Path:
        """
        Maps a storage key back to a file on disk.

        Raises:
            NotFoundError for keys outside the root (../ tricks) or missing files.
        """
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root) or not path.is_file():
            raise NotFoundError(resource="file", resource_id=key)
        return path

    async def save(self, key: str, content: bytes, content_type: str) -> str:
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("File stored locally: %s (%d bytes)", key, len(content))
        return f"{self.public_base}/{key}"


class SupabaseStorageBackend(StorageBackend):
    """
    Supabase Storage over its REST API.

    Upload:  POST {url}/storage/v1/object/{bucket}/{key}
    Public:  {url}/storage/v1/object/public/{bucket}/{key}
    """

    name = "supabase"

    def __init__(
        self,
        url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = (url or settings.supabase_url).rstrip("/")
        self.service_key = service_key or settings.supabase_service_key
        self.bucket = bucket or settings.supabase_bucket
        self.transport = transport
        self.circuit_breaker = build_circuit_breaker("storage service")

    def public_url(self, key: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{key}"

    async def save(self, key: str, content: bytes, content_type: str) -> str:
        self.circuit_breaker.can_execute()
        try:
            await self._upload_with_retry(key, content, content_type)
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.error("Supabase upload failed for %s: %s", key, str(e))
            raise ExternalServiceError(
                service="storage service",
                message="Failed to upload image. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"key": key, "error_type": type(e).__name__},
            )
        self.circuit_breaker.record_success()
        logger.info("File uploaded to bucket %s: %s (%d bytes)", self.bucket, key, len(content))
        return self.public_url(key)

    @outbound_retry()
    async def _upload_with_retry(self, key: str, content: bytes, content_type: str) -> None:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "Content-Type": content_type,
            "x-upsert": "false",
        }
        async with httpx.AsyncClient(transport=self.transport, timeout=30.0) as client:
            response = await client.post(
                f"{self.url}/storage/v1/object/{self.bucket}/{key}",
                content=content,
                headers=headers,
            )
            response.raise_for_status()


def build_backend() -> StorageBackend:
    if settings.storage_backend == "supabase":
        return SupabaseStorageBackend()
    return LocalStorageBackend()


# ══════════════════════════════════════════════════════════════════════════
# Storage Service
# ══════════════════════════════════════════════════════════════════════════

class StorageService:
    """
    Upload pipeline: validate_and_store() runs the checks cheapest-first and
    hands the bytes to the backend.
    """

    def __init__(self, backend: Optional[StorageBackend] = None):
        self.backend = backend or build_backend()
        logger.info("StorageService initialized with backend=%s", self.backend.name)

    def validate_extension(self, filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'unknown'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="image",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="image")

    def validate_image_content(self, content: bytes, extension: str) -> str:
        """
        Decodes the header with Pillow and checks it agrees with the extension.

        Returns:
            Pillow format name ("PNG", "JPEG", "WEBP").
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                image_format = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ValidationError(
                message="The uploaded file is not a valid image.",
                field="image",
                context={"error": type(e).__name__},
            )

        if extension not in FORMAT_EXTENSIONS.get(image_format, set()):
            raise ValidationError(
                message=(
                    f"File content ({image_format or 'unknown'}) does not match "
                    f"its extension '{extension}'."
                ),
                field="image",
                context={"detected_format": image_format, "extension": extension},
            )
        return image_format

    def generate_key(self, extension: str) -> str:
        return f"{UPLOAD_PREFIX}/{uuid.uuid4()}{extension}"

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Validates an upload and stores it.

        Returns:
            Public URL of the stored image.

        Raises:
            ValidationError: bad extension, size or content (400)
            FileStorageError: local write failed (500)
            ExternalServiceError / CircuitBreakerOpenError: remote storage down (503)
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_image_content(content, ext)

        key = self.generate_key(ext)
        return await self.backend.save(key, content, CONTENT_TYPES[ext])


# ── Singleton Instance ────────────────────────────────────────────────────
storage_service = StorageService()
