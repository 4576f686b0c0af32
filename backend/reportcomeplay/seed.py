"""
Report Come Play Backend — Admin Seed Script
==============================================

What:  Creates the first ADMIN account from ADMIN_EMAIL / ADMIN_PASSWORD.
When:  Once per environment, after `alembic upgrade head`.
How:   python -m reportcomeplay.seed

Running it again is harmless: an existing account with that email is left
untouched.
"""

import asyncio
import logging

from sqlalchemy import select

from reportcomeplay.config import settings
from reportcomeplay.database import async_session_factory, dispose_engine
from reportcomeplay.models import AdminProfile, Role, User
from reportcomeplay.security import hash_password
from reportcomeplay.services.auth_service import normalize_email

logger = logging.getLogger("reportcomeplay.seed")


async def seed_admin(session) -> bool:
    """Returns True when a new admin was created."""
    if not settings.admin_email or not settings.admin_password:
        logger.warning("ADMIN_EMAIL and ADMIN_PASSWORD must be set to seed an admin account")
        return False

    email = normalize_email(settings.admin_email)
    existing = await session.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        logger.info("Admin %s already exists, skipping", email)
        return False

    admin = User(
        email=email,
        password_hash=hash_password(settings.admin_password),
        full_name=settings.admin_name,
        role=Role.ADMIN.value,
        email_verified=True,
    )
    session.add(admin)
    await session.flush()
    session.add(AdminProfile(user_id=admin.id, permissions={"all": True}))
    await session.flush()
    logger.info("Admin %s created (id=%s)", email, admin.id)
    return True


async def main() -> None:
    try:
        async with async_session_factory() as session:
            async with session.begin():
                await seed_admin(session)
    finally:
        await dispose_engine()


if __name__ == "__main__":
    from reportcomeplay.main import setup_logging

    setup_logging()
    asyncio.run(main())
