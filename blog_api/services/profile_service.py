"""
Profile service — public profiles and the follow relationship.

A follow is one ``user_follows`` row per (follower, following) pair.
Following yourself is a conflict, checked before anything is written.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import AlreadyFollowingError, ConflictError, NotFollowingError
from blog_api.models import User, UserFollow
from blog_api.services.membership import MembershipChange, add_member, remove_member
from blog_api.services.user_service import find_or_fail_user

logger = logging.getLogger(__name__)


async def is_following(db: AsyncSession, follower_id: int, following_id: int) -> bool:
    q = select(UserFollow.id).where(
        UserFollow.follower_id == follower_id,
        UserFollow.following_id == following_id,
    )
    return (await db.execute(q)).first() is not None


async def get_profile(db: AsyncSession, viewer_id: int | None, username: str) -> tuple[User, bool]:
    user = await find_or_fail_user(db, username)
    following = await is_following(db, viewer_id, user.id) if viewer_id else False
    return user, following


async def follow_user(db: AsyncSession, follower_id: int, username: str) -> User:
    target = await find_or_fail_user(db, username)
    if target.id == follower_id:
        raise ConflictError("user_follow.cannotFollowSelf")

    change = await add_member(db, UserFollow, follower_id=follower_id, following_id=target.id)
    if change is MembershipChange.ALREADY_PRESENT:
        raise AlreadyFollowingError("user_follow.alreadyFollowing")

    logger.info("User %s followed user %s", follower_id, target.id)
    return target


async def unfollow_user(db: AsyncSession, follower_id: int, username: str) -> User:
    target = await find_or_fail_user(db, username)

    change = await remove_member(db, UserFollow, follower_id=follower_id, following_id=target.id)
    if change is MembershipChange.ABSENT:
        raise NotFollowingError("user_follow.notFollowing")

    logger.info("User %s unfollowed user %s", follower_id, target.id)
    return target
