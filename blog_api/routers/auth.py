from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.database import get_db
from blog_api.schemas import AuthResponse, LoginRequest
from blog_api.services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    user, token = await auth_service.login(db, data.email, data.password)
    return {"user": user, **token}
