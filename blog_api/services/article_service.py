"""
Article service — business logic for the Article aggregate.

Design notes
------------
- Every write follows the same shape: load by natural key (slug) or
  fail with NotFoundError, check ownership with ``ensure_owner``, apply
  the change, flush.
- The favorite set lives in ``article_favorites``.  Adding or removing a
  member is a single statement (see ``membership``), and the cached
  ``favorites_count`` / ``favorited`` columns are recomputed from that
  table in one UPDATE, so the count always equals the size of the set.
- ``author`` is ``lazy="noload"``; reads that need it use ``joinedload``
  explicitly.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import re
import time
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from blog_api.exceptions import AlreadyMemberError, NotFoundError, NotMemberError
from blog_api.models import Article, ArticleFavorite, User
from blog_api.schemas import ArticleCreate, ArticleUpdate
from blog_api.services.membership import MembershipChange, add_member, remove_member
from blog_api.services.ownership import ensure_owner

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SEPARATOR_RE = re.compile(r"[\s_-]+")

_last_slug_suffix = 0


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    return _SLUG_SEPARATOR_RE.sub("-", text).strip("-")


def _next_slug_suffix() -> int:
    """Millisecond timestamp, bumped so it never repeats within the process."""
    global _last_slug_suffix
    _last_slug_suffix = max(int(time.time() * 1000), _last_slug_suffix + 1)
    return _last_slug_suffix


def generate_slug(title: str) -> str:
    """
    ``slugify(title)`` plus a numeric suffix.

    The suffix makes collisions unlikely but not impossible across
    processes; the unique constraint on ``articles.slug`` is the backstop
    and surfaces as a 409 at the HTTP boundary.
    """
    base = slugify(title)
    suffix = _next_slug_suffix()
    return f"{base}-{suffix}" if base else str(suffix)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def _find_one(db: AsyncSession, *criteria) -> Article | None:
    q = (
        select(Article)
        .where(*criteria)
        .options(joinedload(Article.author))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def get_article_by_slug(db: AsyncSession, slug: str) -> Article:
    article = await _find_one(db, Article.slug == slug)
    if article is None:
        raise NotFoundError("article.notFound")
    return article


async def get_article_by_id(db: AsyncSession, article_id: int) -> Article:
    article = await _find_one(db, Article.id == article_id)
    if article is None:
        raise NotFoundError("article.notFound")
    return article


async def list_articles(
    db: AsyncSession, page: int = 1, limit: int = 20
) -> tuple[list[Article], int]:
    """
    Return one page of articles, newest first, and the total count.

    ``id`` breaks ties between rows created within the same timestamp
    tick so pages never overlap.
    """
    total: int = (
        await db.execute(select(func.count()).select_from(Article))
    ).scalar_one()

    q = (
        select(Article)
        .options(joinedload(Article.author))
        .order_by(Article.created_at.desc(), Article.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(q)
    return list(result.unique().scalars().all()), total


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, data: ArticleCreate, author: User) -> Article:
    article = Article(
        title=data.title,
        description=data.description,
        body=data.body,
        tag_list=list(data.tag_list),
        slug=generate_slug(data.title),
        favorited=False,
        favorites_count=0,
        author_id=author.id,
    )
    db.add(article)
    await db.flush()
    logger.info("Article created: id=%s slug=%s author=%s", article.id, article.slug, author.id)
    return await get_article_by_id(db, article.id)


async def update_article(
    db: AsyncSession, slug: str, data: ArticleUpdate, principal: User
) -> Article:
    """
    Merge the fields set in *data* into the article and return it.

    Only the author may update.  The slug is regenerated when the title
    actually changes.  An empty patch still re-saves the row and bumps
    ``updated_at``.
    """
    article = await get_article_by_slug(db, slug)
    ensure_owner(article, principal, "article.forbidden")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    new_title = changes.get("title")
    if new_title is not None and new_title != article.title:
        article.slug = generate_slug(new_title)

    for field, value in changes.items():
        setattr(article, field, value)
    article.updated_at = datetime.now(timezone.utc)

    await db.flush()
    logger.info("Article updated: id=%s fields=%s", article.id, sorted(changes))
    return await get_article_by_id(db, article.id)


async def delete_article(db: AsyncSession, slug: str, principal: User) -> Article:
    """Delete the article and return it as it was just before deletion."""
    article = await get_article_by_slug(db, slug)
    ensure_owner(article, principal, "article.forbidden")

    await db.delete(article)
    await db.flush()
    logger.info("Article deleted: id=%s slug=%s", article.id, article.slug)
    return article


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------

async def _sync_favorite_counters(db: AsyncSession, article_id: int) -> None:
    """Recompute ``favorites_count`` and ``favorited`` from the favorite set."""
    set_size = (
        select(func.count())
        .select_from(ArticleFavorite)
        .where(ArticleFavorite.article_id == article_id)
        .scalar_subquery()
    )
    await db.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(favorites_count=set_size, favorited=set_size > 0)
        .execution_options(synchronize_session=False)
    )


async def favorite_article(db: AsyncSession, slug: str, user: User) -> Article:
    article = await get_article_by_slug(db, slug)

    change = await add_member(db, ArticleFavorite, article_id=article.id, user_id=user.id)
    if change is MembershipChange.ALREADY_PRESENT:
        raise AlreadyMemberError("article.alreadyFavorited")

    await _sync_favorite_counters(db, article.id)
    return await get_article_by_id(db, article.id)


async def unfavorite_article(db: AsyncSession, slug: str, user: User) -> Article:
    article = await get_article_by_slug(db, slug)

    change = await remove_member(db, ArticleFavorite, article_id=article.id, user_id=user.id)
    if change is MembershipChange.ABSENT:
        raise NotMemberError("article.notFavorited")

    await _sync_favorite_counters(db, article.id)
    return await get_article_by_id(db, article.id)


async def favorited_user_ids(db: AsyncSession, article_id: int) -> set[int]:
    result = await db.execute(
        select(ArticleFavorite.user_id).where(ArticleFavorite.article_id == article_id)
    )
    return set(result.scalars().all())
