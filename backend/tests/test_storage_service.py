"""
Report Come Play Backend — Storage Service Unit Tests
=======================================================

What:  Tests for upload validation and both storage backends.
How:   Real PNG/JPEG bytes from Pillow; the Supabase backend talks to an
       httpx.MockTransport instead of the network.

Test Strategy:
    ✅ Extension allow-list (case-insensitive)
    ✅ Size limits and empty files
    ✅ Content must decode and agree with the extension
    ✅ Local backend writes under the root and refuses path traversal
    ✅ Supabase backend: request shape, public URL, retry and failure mapping
"""

import httpx
import pytest

from reportcomeplay.config import settings
from reportcomeplay.exceptions import ExternalServiceError, NotFoundError, ValidationError
from reportcomeplay.services.storage_service import (
    LocalStorageBackend,
    StorageService,
    SupabaseStorageBackend,
)


class TestValidation:

    def setup_method(self):
        self.service = StorageService(backend=LocalStorageBackend())

    # ── Extension ─────────────────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["a.png", "a.jpg", "a.jpeg", "a.webp", "A.JPG"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == "." + filename.rsplit(".", 1)[1].lower()

    @pytest.mark.parametrize("filename", ["a.gif", "a.pdf", "noextension", "a.exe"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Size ──────────────────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(None, 1000)

    def test_declared_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(settings.max_file_size + 1, 10)

    def test_actual_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, settings.max_file_size + 1)

    def test_exact_limit_allowed(self):
        self.service.validate_size(settings.max_file_size, settings.max_file_size)

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(None, 0)

    # ── Content ───────────────────────────────────────────────────────────

    def test_png_content(self, png_bytes):
        assert self.service.validate_image_content(png_bytes, ".png") == "PNG"

    def test_jpeg_content(self, jpeg_bytes):
        assert self.service.validate_image_content(jpeg_bytes, ".jpeg") == "JPEG"

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError, match="not a valid image"):
            self.service.validate_image_content(b"definitely not an image", ".png")

    def test_extension_mismatch_rejected(self, png_bytes):
        with pytest.raises(ValidationError, match="does not match"):
            self.service.validate_image_content(png_bytes, ".jpg")


class TestLocalBackend:

    @pytest.mark.asyncio
    async def test_store_and_resolve(self, temp_storage, png_bytes):
        backend = LocalStorageBackend(root=temp_storage)
        service = StorageService(backend=backend)

        url = await service.validate_and_store("pitch.png", png_bytes)

        assert url.startswith("/api/files/uploads/")
        assert url.endswith(".png")
        key = url[len("/api/files/"):]
        assert backend.resolve(key).read_bytes() == png_bytes

    def test_resolve_missing(self, temp_storage):
        with pytest.raises(NotFoundError):
            LocalStorageBackend(root=temp_storage).resolve("uploads/nope.png")

    def test_resolve_rejects_traversal(self, tmp_path):
        (tmp_path / "secret.txt").write_text("x")
        root = tmp_path / "storage"
        with pytest.raises(NotFoundError):
            LocalStorageBackend(root=str(root)).resolve("../secret.txt")

    @pytest.mark.asyncio
    async def test_invalid_upload_not_written(self, temp_storage):
        backend = LocalStorageBackend(root=temp_storage)
        with pytest.raises(ValidationError):
            await StorageService(backend=backend).validate_and_store("pitch.png", b"garbage")
        assert not (backend.root / "uploads").exists()


class TestSupabaseBackend:

    @pytest.mark.asyncio
    async def test_upload_request_and_public_url(self, png_bytes):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "field-images/uploads/x.png"})

        backend = SupabaseStorageBackend(
            url="https://proj.supabase.co/",
            service_key="service-key",
            bucket="field-images",
            transport=httpx.MockTransport(handler),
        )
        url = await StorageService(backend=backend).validate_and_store("pitch.png", png_bytes)

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path.startswith("/storage/v1/object/field-images/uploads/")
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Content-Type"] == "image/png"
        assert url.startswith("https://proj.supabase.co/storage/v1/object/public/field-images/uploads/")

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, png_bytes):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(503)
            return httpx.Response(200)

        backend = SupabaseStorageBackend(
            url="https://proj.supabase.co",
            service_key="k",
            transport=httpx.MockTransport(handler),
        )
        await backend.save("uploads/a.png", png_bytes, "image/png")

        assert calls["n"] == 2
        assert backend.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, png_bytes):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(400, json={"error": "Invalid key"})

        backend = SupabaseStorageBackend(
            url="https://proj.supabase.co",
            service_key="k",
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ExternalServiceError):
            await backend.save("uploads/a.png", png_bytes, "image/png")

        assert calls["n"] == 1
        assert backend.circuit_breaker.failure_count == 1
