"""
Report Come Play Backend — Auth Routes
========================================

What:  /api/auth: register, login, me, verify-email, resend-verification.
Rate limit: register, login and resend-verification share the "auth"
policy (10 requests / 15 min / IP) in RateLimitMiddleware.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.database import get_db_session
from reportcomeplay.dependencies import get_current_user
from reportcomeplay.models import User
from reportcomeplay.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    UserResponse,
    VerifyEmailRequest,
)
from reportcomeplay.schemas.common import ErrorResponse, MessageResponse
from reportcomeplay.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    },
    summary="Register a reporter or owner account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await auth_service.register(db, body)
    return AuthResponse(
        message="User registered successfully. Please check your email for the verification code.",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for an access token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await auth_service.login(db, body.email, body.password)
    return AuthResponse(
        message="Login successful.",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.post(
    "/verify-email",
    response_model=MessageResponse,
    responses={
        400: {"description": "Wrong code", "model": ErrorResponse},
        404: {"description": "Unknown user", "model": ErrorResponse},
    },
    summary="Confirm an email address with the 6-digit code",
)
async def verify_email(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.verify_email(db, body.user_id, body.code)
    return MessageResponse(message="Email verified successfully.")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    responses={400: {"description": "Already verified", "model": ErrorResponse}},
    summary="Send a fresh verification code",
)
async def resend_verification(
    body: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.resend_verification(db, body.email)
    return MessageResponse(
        message="If an account exists for this email, a new verification code has been sent."
    )
