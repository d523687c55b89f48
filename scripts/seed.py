"""Seed the blog database with demo users, articles, comments, follows and favorites."""
import argparse
import asyncio
import logging
import random
import time

from blog_api.database import Base, async_session, engine
from blog_api.logging_config import setup_logging
from blog_api.models import User
from blog_api.schemas import ArticleCreate, CommentCreate
from blog_api.security import hash_password
from blog_api.services import article_service, comment_service, profile_service

logger = logging.getLogger("seed")

TAGS = ["python", "fastapi", "postgresql", "docker", "testing", "security",
        "devops", "react", "typescript", "performance"]

DEMO_PASSWORD = "Password123!"


async def seed(small: bool = False) -> None:
    num_users = 5 if small else 30
    num_articles = 20 if small else 500
    max_comments = 2 if small else 5

    logger.info("Seeding: %d users, %d articles", num_users, num_articles)
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        # One hash for every demo account keeps seeding fast.
        password_hash = hash_password(DEMO_PASSWORD)
        users = []
        for i in range(num_users):
            user = User(
                email=f"user_{i:03d}@example.com",
                username=f"user_{i:03d}",
                password_hash=password_hash,
                bio=f"I am demo user number {i}. I write about technology.",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        logger.info("Created %d users (password: %s)", len(users), DEMO_PASSWORD)

        for follower in users:
            for target in random.sample(users, k=min(3, len(users))):
                if target.id != follower.id:
                    await profile_service.follow_user(session, follower.id, target.username)

        total_comments = 0
        for i in range(num_articles):
            author = random.choice(users)
            topic = random.choice(TAGS)
            article = await article_service.create_article(
                session,
                ArticleCreate(
                    title=f"Article {i}: Getting started with {topic}",
                    description=f"A practical introduction to {topic}.",
                    body=f"This is the full body of article {i}. " * 20,
                    tag_list=random.sample(TAGS, k=random.randint(1, 3)),
                ),
                author,
            )
            for reader in random.sample(users, k=random.randint(0, min(4, len(users)))):
                await article_service.favorite_article(session, article.slug, reader)
            for _ in range(random.randint(0, max_comments)):
                await comment_service.create_comment(
                    session,
                    article.slug,
                    CommentCreate(body=f"Great read! Thanks for writing about {topic}."),
                    random.choice(users),
                )
                total_comments += 1

        await session.commit()

    logger.info(
        "Seeding complete in %.1fs: %d users, %d articles, %d comments",
        time.perf_counter() - start,
        num_users,
        num_articles,
        total_comments,
    )


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset")
    args = parser.parse_args()
    setup_logging()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
