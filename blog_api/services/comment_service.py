"""
Comment service — comments hang off an article addressed by slug.

Any authenticated user may comment on an existing article; only the
comment's author may delete it.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from blog_api.exceptions import NotFoundError
from blog_api.models import Comment, User
from blog_api.schemas import CommentCreate
from blog_api.services.article_service import get_article_by_slug
from blog_api.services.ownership import ensure_owner

logger = logging.getLogger(__name__)


async def _find_comment(db: AsyncSession, comment_id: int) -> Comment | None:
    q = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(joinedload(Comment.author))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def create_comment(
    db: AsyncSession, slug: str, data: CommentCreate, author: User
) -> Comment:
    article = await get_article_by_slug(db, slug)

    comment = Comment(body=data.body, article_id=article.id, author_id=author.id)
    db.add(comment)
    await db.flush()
    logger.info("Comment created: id=%s article=%s author=%s", comment.id, article.id, author.id)
    return await _find_comment(db, comment.id)


async def list_comments(db: AsyncSession, slug: str) -> list[Comment]:
    """Return the article's comments, newest first, with authors loaded."""
    article = await get_article_by_slug(db, slug)

    q = (
        select(Comment)
        .where(Comment.article_id == article.id)
        .options(joinedload(Comment.author))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    result = await db.execute(q)
    return list(result.unique().scalars().all())


async def delete_comment(
    db: AsyncSession, slug: str, comment_id: int, principal: User
) -> Comment:
    """
    Delete a comment and return it as it was just before deletion.

    A comment id that exists but belongs to a different article is
    reported as not found.
    """
    article = await get_article_by_slug(db, slug)
    comment = await _find_comment(db, comment_id)
    if comment is None or comment.article_id != article.id:
        raise NotFoundError("comment.notFound")

    ensure_owner(comment, principal, "comment.forbidden")

    await db.delete(comment)
    await db.flush()
    logger.info("Comment deleted: id=%s article=%s", comment.id, article.id)
    return comment
