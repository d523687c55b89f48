from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.database import get_db
from blog_api.dependencies import get_current_user
from blog_api.models import User
from blog_api.schemas import ProfileResponse
from blog_api.services import profile_service

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


def _profile(user: User, following: bool) -> dict:
    return {
        "profile": {
            "username": user.username,
            "bio": user.bio,
            "image": user.image,
            "following": following,
        }
    }

@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target, following = await profile_service.get_profile(db, user.id, username)
    return _profile(target, following)

@router.post("/{username}/follow", response_model=ProfileResponse)
async def follow_user(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await profile_service.follow_user(db, user.id, username)
    return _profile(target, True)

@router.delete("/{username}/follow", response_model=ProfileResponse)
async def unfollow_user(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await profile_service.unfollow_user(db, user.id, username)
    return _profile(target, False)
