"""
User service — registration and account management.

Email and username are unique.  Both are pre-checked so the common case
returns a precise message; the unique constraints remain the backstop
for concurrent registrations and surface as 409 at the HTTP boundary.
Passwords are hashed before they reach the ORM and are never logged.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import ConflictError, NotFoundError
from blog_api.models import User
from blog_api.schemas import RegisterRequest, UserUpdate
from blog_api.security import hash_password
from blog_api.storage import LocalImageStorage

logger = logging.getLogger(__name__)


async def _email_taken(db: AsyncSession, email: str, exclude_id: int | None = None) -> bool:
    q = select(User.id).where(User.email == email)
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    return (await db.execute(q)).first() is not None


async def _username_taken(
    db: AsyncSession, username: str, exclude_id: int | None = None
) -> bool:
    q = select(User.id).where(User.username == username)
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    return (await db.execute(q)).first() is not None


async def register(db: AsyncSession, data: RegisterRequest) -> User:
    if await _email_taken(db, data.email):
        raise ConflictError("auth.emailAlreadyTaken")
    if await _username_taken(db, data.username):
        raise ConflictError("auth.usernameAlreadyTaken")

    user = User(
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    await db.flush()
    logger.info("User registered: id=%s username=%s", user.id, user.username)
    return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def find_or_fail_user(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("user.notFound")
    return user


async def update_user(
    db: AsyncSession,
    user: User,
    data: UserUpdate,
    storage: LocalImageStorage,
    image: tuple[bytes, str] | None = None,
) -> User:
    """
    Merge the fields set in *data* into *user*.

    *image* is ``(content, filename)`` of an already validated upload; the
    new file is stored first and the previous one deleted once the row
    has been flushed.
    """
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes and await _email_taken(db, changes["email"], exclude_id=user.id):
        raise ConflictError("auth.emailAlreadyTaken")
    if "username" in changes and await _username_taken(
        db, changes["username"], exclude_id=user.id
    ):
        raise ConflictError("auth.usernameAlreadyTaken")

    password = changes.pop("password", None)
    if password is not None:
        user.password_hash = hash_password(password)
    for field, value in changes.items():
        setattr(user, field, value)

    previous_image = user.image
    new_image = None
    if image is not None:
        content, filename = image
        new_image = storage.upload_image(content, filename)
        user.image = new_image

    try:
        await db.flush()
    except Exception:
        # No row points at the new file yet.
        if new_image is not None:
            storage.delete_image(new_image)
        raise

    if image is not None and previous_image:
        storage.delete_image(previous_image)

    logger.info(
        "User updated: id=%s fields=%s",
        user.id,
        sorted([*changes, *(["password"] if password else []), *(["image"] if image else [])]),
    )
    return user


async def list_users(db: AsyncSession, page: int = 1, limit: int = 20) -> tuple[list[User], int]:
    total: int = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    q = (
        select(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(q)
    return list(result.scalars().all()), total
