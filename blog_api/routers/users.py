from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.config import settings
from blog_api.database import get_db
from blog_api.dependencies import PaginationParams, get_current_user
from blog_api.exceptions import BlogError
from blog_api.models import User
from blog_api.schemas import RegisterRequest, UserListResponse, UserResponse, UserUpdate
from blog_api.services import user_service
from blog_api.storage import ALLOWED_IMAGE_TYPES, LocalImageStorage, get_image_storage

router = APIRouter(prefix="/api/v1/users", tags=["users"])


async def _read_image(image: UploadFile | None) -> tuple[bytes, str] | None:
    if image is None or not image.filename:
        return None
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise BlogError("user.invalidImage")
    content = await image.read()
    if len(content) > settings.IMAGE_MAX_SIZE:
        raise BlogError("user.imageTooLarge", max_size=settings.IMAGE_MAX_SIZE)
    return content, image.filename

@router.post("", status_code=201, response_model=UserResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    return await user_service.register(db, data)

@router.get("/profile", response_model=UserResponse)
async def get_own_profile(user: User = Depends(get_current_user)):
    return user

@router.put("", response_model=UserResponse)
async def update_user(
    email: str | None = Form(None),
    username: str | None = Form(None),
    password: str | None = Form(None),
    bio: str | None = Form(None),
    image: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    storage: LocalImageStorage = Depends(get_image_storage),
    db: AsyncSession = Depends(get_db),
):
    fields = {"email": email, "username": username, "password": password, "bio": bio}
    try:
        data = UserUpdate(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())
    upload = await _read_image(image)
    return await user_service.update_user(db, user, data, storage, upload)

@router.get("", response_model=UserListResponse)
async def list_users(
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    users, total = await user_service.list_users(db, pagination.page, pagination.limit)
    return {"users": users, "total": total}
