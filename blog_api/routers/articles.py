from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.database import get_db
from blog_api.dependencies import PaginationParams, get_current_user
from blog_api.models import User
from blog_api.schemas import (
    ArticleCreate,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdate,
    CommentCreate,
    CommentListResponse,
    CommentResponse,
)
from blog_api.services import article_service, comment_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.create_article(db, data, user)

@router.get("", response_model=ArticleListResponse)
async def list_articles(
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    articles, total = await article_service.list_articles(db, pagination.page, pagination.limit)
    return {"articles": articles, "total": total}

@router.get("/{slug}", response_model=ArticleResponse)
async def get_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_article_by_slug(db, slug)

@router.put("/{slug}", response_model=ArticleResponse)
async def update_article(
    slug: str,
    data: ArticleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.update_article(db, slug, data, user)

@router.delete("/{slug}", response_model=ArticleResponse)
async def delete_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.delete_article(db, slug, user)

@router.post("/{slug}/favorite", response_model=ArticleResponse)
async def favorite_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.favorite_article(db, slug, user)

@router.delete("/{slug}/favorite", response_model=ArticleResponse)
async def unfavorite_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.unfavorite_article(db, slug, user)

@router.post("/{slug}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(
    slug: str,
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, slug, data, user)

@router.get("/{slug}/comments", response_model=CommentListResponse)
async def list_comments(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comments = await comment_service.list_comments(db, slug)
    return {"comments": comments, "total": len(comments)}

@router.delete("/{slug}/comments/{comment_id}", response_model=CommentResponse)
async def delete_comment(
    slug: str,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.delete_comment(db, slug, comment_id, user)
