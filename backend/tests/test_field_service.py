"""
Report Come Play Backend — Field Service Unit Tests
=====================================================

What:  Tests for FieldService.create_field's gatekeeping with a mocked session.
How:   mock_db_session returns canned rows for the duplicate scan; nothing
       reaches a database.

Test Strategy:
    ✅ Duplicate name / location → DuplicateFieldError, nothing inserted
    ✅ Duplicate check runs before the image-count check
    ✅ Wrong image count → ValidationError, nothing inserted
    ✅ Advisory lock only on PostgreSQL
    ✅ Ownership rule for update/delete
"""

import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from reportcomeplay.exceptions import DuplicateFieldError, PermissionDeniedError, ValidationError
from reportcomeplay.models import Role
from reportcomeplay.schemas.field import FieldCreateRequest
from reportcomeplay.services.field_service import FieldService


def _row(name, location):
    return SimpleNamespace(id=uuid.uuid4(), name=name, location=location)


def _request(name="New Pitch", location="Yaba, Lagos", images=3):
    return FieldCreateRequest(
        name=name,
        location=location,
        images=[f"https://cdn.example.com/{i}.jpg" for i in range(images)],
    )


class TestCreateFieldGate:

    def setup_method(self):
        self.service = FieldService()
        self.user = SimpleNamespace(id=uuid.uuid4(), role=Role.REPORTER.value)

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, mock_db_session):
        existing = _row("Mini Stadium", "Surulere")
        mock_db_session.execute.return_value = [existing]

        with pytest.raises(DuplicateFieldError) as exc_info:
            await self.service.create_field(
                mock_db_session, self.user, _request(name="  mini   STADIUM ")
            )

        assert exc_info.value.existing_id == existing.id
        assert '"Mini Stadium" at "Surulere"' in exc_info.value.message
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_location_rejected(self, mock_db_session):
        mock_db_session.execute.return_value = [_row("Old Name", "Yaba, Lagos")]

        with pytest.raises(DuplicateFieldError):
            await self.service.create_field(mock_db_session, self.user, _request(name="Other"))

    @pytest.mark.asyncio
    async def test_duplicate_reported_before_image_count(self, mock_db_session):
        """A duplicate with the wrong number of images is still a 409, not a 400."""
        mock_db_session.execute.return_value = [_row("New Pitch", "Elsewhere")]

        with pytest.raises(DuplicateFieldError):
            await self.service.create_field(mock_db_session, self.user, _request(images=1))

    @pytest.mark.asyncio
    async def test_wrong_image_count_rejected(self, mock_db_session):
        mock_db_session.execute.return_value = []

        with pytest.raises(ValidationError, match="Exactly 3 images are required.") as exc_info:
            await self.service.create_field(mock_db_session, self.user, _request(images=2))

        assert exc_info.value.field == "images"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_lock_outside_postgresql(self, mock_db_session):
        mock_db_session.execute.return_value = [_row("Mini Stadium", "Surulere")]

        with pytest.raises(DuplicateFieldError):
            await self.service.create_field(
                mock_db_session, self.user, _request(name="Mini Stadium")
            )

        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_advisory_lock_on_postgresql(self, mock_db_session):
        mock_db_session.bind.dialect.name = "postgresql"
        mock_db_session.execute.side_effect = [MagicMock(), [_row("Mini Stadium", "Surulere")]]

        with pytest.raises(DuplicateFieldError):
            await self.service.create_field(
                mock_db_session, self.user, _request(name="Mini Stadium")
            )

        lock_statement = mock_db_session.execute.await_args_list[0].args[0]
        assert "pg_advisory_xact_lock" in str(lock_statement)


class TestOwnership:

    def setup_method(self):
        self.owner_id = uuid.uuid4()
        self.field = SimpleNamespace(id=uuid.uuid4(), owner_id=self.owner_id)

    def test_owner_allowed(self):
        FieldService._check_ownership(
            self.field, SimpleNamespace(id=self.owner_id, role=Role.OWNER.value), "update"
        )

    def test_admin_allowed(self):
        FieldService._check_ownership(
            self.field, SimpleNamespace(id=uuid.uuid4(), role=Role.ADMIN.value), "delete"
        )

    def test_other_owner_denied(self):
        with pytest.raises(PermissionDeniedError, match="You can only update your own fields."):
            FieldService._check_ownership(
                self.field, SimpleNamespace(id=uuid.uuid4(), role=Role.OWNER.value), "update"
            )
