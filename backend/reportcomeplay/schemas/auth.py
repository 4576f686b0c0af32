"""
Report Come Play Backend — Auth & Profile Schemas
===================================================

What:  Request/response models for /api/auth and /api/users/profile.
Who:   AuthService, UserService and their route handlers.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from reportcomeplay.models.enums import Role


def _check_password(value: str) -> str:
    if len(value) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not any(ch.isdigit() for ch in value):
        raise ValueError("Password must contain at least one number")
    return value


# ── Requests ──────────────────────────────────────────────────────────────


class RegisterRequest(BaseModel):
    """
    Body of POST /api/auth/register.

    Self-registration may pick REPORTER or OWNER; ADMIN accounts only come
    from the seed script.
    """
    email: EmailStr
    password: str
    full_name: str = Field(min_length=1, max_length=255)
    role: Role = Role.REPORTER
    phone_number: Optional[str] = Field(default=None, max_length=50)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        if v == Role.ADMIN:
            raise ValueError("Role must be REPORTER or OWNER")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class VerifyEmailRequest(BaseModel):
    user_id: uuid.UUID
    code: str = Field(min_length=1, max_length=10)


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class ProfileUpdateRequest(BaseModel):
    """
    Body of PUT /api/users/profile. Every key is optional; only the keys
    present in the request are applied.
    """
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=50)
    bank_name: Optional[str] = Field(default=None, max_length=255)
    account_number: Optional[str] = Field(default=None, max_length=50)
    account_name: Optional[str] = Field(default=None, max_length=255)
    current_password: Optional[str] = None
    new_password: Optional[str] = None

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_password(v)


# ── Responses ─────────────────────────────────────────────────────────────


class UserResponse(BaseModel):
    """A user as the API exposes it. Hash and verification code stay server-side."""
    id: uuid.UUID
    email: str
    full_name: str
    role: str
    phone_number: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None
    email_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
    token: str
