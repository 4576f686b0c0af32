"""
ORM models. Importing this package registers every table with Base.metadata
(Alembic autogenerate and the test suite's create_all rely on that).
"""

from reportcomeplay.models.enums import (
    FieldStatus,
    NotificationType,
    PayoutStatus,
    ReportStatus,
    Role,
)
from reportcomeplay.models.user import AdminProfile, User
from reportcomeplay.models.field import Field
from reportcomeplay.models.report import Report
from reportcomeplay.models.payout import Notification, Payout

__all__ = [
    "AdminProfile",
    "Field",
    "FieldStatus",
    "Notification",
    "NotificationType",
    "Payout",
    "PayoutStatus",
    "Report",
    "ReportStatus",
    "Role",
    "User",
]
