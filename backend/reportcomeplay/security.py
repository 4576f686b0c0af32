"""
Report Come Play Backend — Password Hashing & Access Tokens
=============================================================

What:  bcrypt password hashing and PyJWT access tokens.
Who:   AuthService (register/login/password change), dependencies.get_current_user
       and the seed script.

Token payload:
    {"user_id": "<uuid>", "role": "REPORTER|OWNER|ADMIN", "exp": <unix time>}
    Signed with settings.jwt_secret using settings.jwt_algorithm (HS256).
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from reportcomeplay.config import settings


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison; a malformed stored hash counts as a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(
    user_id: Any,
    role: str,
    expires_minutes: Optional[int] = None,
) -> str:
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.jwt_expires_minutes
    )
    payload = {"user_id": str(user_id), "role": role, "exp": expires}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Returns the verified payload.

    Raises:
        jwt.InvalidTokenError (or a subclass such as ExpiredSignatureError)
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


# ── Verification codes ────────────────────────────────────────────────────

def generate_verification_code() -> str:
    """Six decimal digits, 100000-999999."""
    return str(secrets.randbelow(900000) + 100000)
