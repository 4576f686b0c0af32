"""
Report Come Play Backend — Payout, Notification & Admin Schemas
=================================================================

What:  Models for /api/admin (users, payouts, stats, verification) and the
       payout/notification listings under /api/users.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from reportcomeplay.models.enums import PayoutStatus
from reportcomeplay.schemas.auth import UserResponse
from reportcomeplay.schemas.common import Pagination, UserSummary


# ── Payouts ───────────────────────────────────────────────────────────────


class PayoutCreateRequest(BaseModel):
    user_id: uuid.UUID
    amount: float = Field(gt=0)
    status: PayoutStatus = PayoutStatus.PENDING
    receipt_url: Optional[str] = Field(default=None, max_length=1024)


class PayoutUpdateRequest(BaseModel):
    status: PayoutStatus
    receipt_url: Optional[str] = Field(default=None, max_length=1024)


class PayoutResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    amount: float
    status: str
    receipt_url: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class PayoutListResponse(BaseModel):
    payouts: List[PayoutResponse]
    pagination: Pagination


class PayoutMutationResponse(BaseModel):
    success: bool = True
    message: str
    payout: PayoutResponse


# ── Notifications ─────────────────────────────────────────────────────────


class NotificationResponse(BaseModel):
    id: uuid.UUID
    title: str
    message: str
    type: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Users (admin view) ────────────────────────────────────────────────────


class AdminUserResponse(UserResponse):
    report_count: int = 0
    field_count: int = 0
    payout_count: int = 0


class AdminUserListResponse(BaseModel):
    users: List[AdminUserResponse]
    pagination: Pagination


# ── Field verification ────────────────────────────────────────────────────


class FieldVerifyRequest(BaseModel):
    """
    status is a plain string so that PENDING (a valid FieldStatus but not a
    verdict) is rejected by the service with the same 400 as any typo.
    """
    status: str


# ── Dashboard stats ───────────────────────────────────────────────────────


class UserStats(BaseModel):
    total: int
    reporters: int
    owners: int


class FieldStats(BaseModel):
    total: int
    pending: int
    approved: int


class ReportStats(BaseModel):
    total: int
    pending: int


class PayoutStats(BaseModel):
    total: int
    pending: int
    pending_amount: float


class ChartPoint(BaseModel):
    """One UTC day on the 7-day dashboard chart."""
    day: date
    submissions: int
    new_users: int
    active_users: int


class RecentField(BaseModel):
    id: uuid.UUID
    name: str
    location: str
    status: str
    created_at: datetime
    owner: UserSummary


class TopReporter(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    total_fields: int
    approved_fields: int


class StatsResponse(BaseModel):
    users: UserStats
    fields: FieldStats
    reports: ReportStats
    payouts: PayoutStats
    chart: List[ChartPoint]
    recent_fields: List[RecentField]
    top_reporters: List[TopReporter]
