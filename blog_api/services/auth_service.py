"""
Authentication service — credential checks and principal resolution.

An unknown email and a wrong password produce the same error, and the
unknown-email path still pays for a bcrypt verification, so neither the
response nor its timing reveals which accounts exist.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import UnauthorizedError
from blog_api.models import User
from blog_api.security import create_access_token, dummy_verify, verify_password
from blog_api.services.user_service import get_user_by_id

logger = logging.getLogger(__name__)


async def login(db: AsyncSession, email: str, password: str) -> tuple[User, dict]:
    """Return the user and a freshly issued token, or raise UnauthorizedError."""
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        dummy_verify()
        logger.info("Login failed: unknown email")
        raise UnauthorizedError("auth.invalidEmailOrPassword")

    if not verify_password(password, user.password_hash):
        logger.info("Login failed: bad password for user id=%s", user.id)
        raise UnauthorizedError("auth.invalidEmailOrPassword")

    logger.info("Login succeeded: user id=%s", user.id)
    return user, create_access_token(user)


async def validate_user(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("auth.userNotFound")
    return user
