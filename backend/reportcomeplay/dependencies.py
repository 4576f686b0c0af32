"""
Report Come Play Backend — Authentication & Role Dependencies
===============================================================

What:  FastAPI dependencies that resolve the bearer token to a User and
       enforce role guards.
Who:   Every protected route (`Depends(get_current_user)`, `Depends(require_admin)`).

Failure mapping:
    no Authorization header        → 401 AuthenticationError
    token undecodable / expired    → 403 PermissionDeniedError
    token valid, user gone         → 401 AuthenticationError
    role not in the allowed set    → 403 PermissionDeniedError
"""

import logging
import uuid
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from reportcomeplay.database import get_db_session
from reportcomeplay.exceptions import AuthenticationError, PermissionDeniedError
from reportcomeplay.models import Role, User
from reportcomeplay.security import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required.")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = uuid.UUID(str(payload["user_id"]))
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        logger.info("Rejected access token: %s", type(e).__name__)
        raise PermissionDeniedError("Invalid or expired token.")

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found.")
    return user


def require_roles(*roles: Role):
    """Builds a dependency that admits only users holding one of `roles`."""
    allowed = {role.value for role in roles}

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError(
                "Insufficient permissions.",
                context={"required": sorted(allowed), "role": user.role},
            )
        return user

    return dependency


require_admin = require_roles(Role.ADMIN)
require_owner = require_roles(Role.OWNER, Role.ADMIN)
require_reporter = require_roles(Role.REPORTER, Role.OWNER, Role.ADMIN)
