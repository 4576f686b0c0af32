"""
Report Come Play Backend — Report SQLAlchemy Model
====================================================

What:  ORM model for the `reports` table: a user's written report about a field.
Who:   ReportService (CRUD), UserService (own reports), AdminService (stats).

Reports are deleted with their field (ON DELETE CASCADE) and start in
status PENDING; only an admin can move them to APPROVED / REJECTED.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reportcomeplay.database import Base
from reportcomeplay.models.enums import ReportStatus
from reportcomeplay.models.field import Field
from reportcomeplay.models.user import User, utcnow


class Report(Base):
    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReportStatus.PENDING.value
    )

    field_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("fields.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    field: Mapped[Field] = relationship(back_populates="reports")
    user: Mapped[User] = relationship(back_populates="reports")

    __table_args__ = (Index("idx_reports_created_at", created_at.desc()),)

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, field_id={self.field_id}, status='{self.status}')>"
