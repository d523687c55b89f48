"""Profile and follow toggle tests."""
import pytest
from httpx import AsyncClient
from sqlalchemy import delete, func, select

from blog_api.models import User, UserFollow
from blog_api.services import profile_service


async def _follow_rows(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(UserFollow))).scalar_one()


@pytest.mark.asyncio
async def test_get_profile(async_client: AsyncClient, register_user):
    _, headers = await register_user("viewer")
    await register_user("target")

    resp = await async_client.get("/api/v1/profiles/target", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "profile": {"username": "target", "bio": None, "image": None, "following": False}
    }


@pytest.mark.asyncio
async def test_get_unknown_profile(async_client: AsyncClient, register_user):
    _, headers = await register_user("viewer")
    resp = await async_client.get("/api/v1/profiles/nobody", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_follow_and_unfollow(async_client: AsyncClient, register_user):
    _, headers = await register_user("fan")
    await register_user("star")

    resp = await async_client.post("/api/v1/profiles/star/follow", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["following"] is True

    resp = await async_client.get("/api/v1/profiles/star", headers=headers)
    assert resp.json()["profile"]["following"] is True

    resp = await async_client.delete("/api/v1/profiles/star/follow", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["following"] is False

    resp = await async_client.get("/api/v1/profiles/star", headers=headers)
    assert resp.json()["profile"]["following"] is False


@pytest.mark.asyncio
async def test_following_is_one_directional(async_client: AsyncClient, register_user):
    _, fan_headers = await register_user("fan")
    _, star_headers = await register_user("star")
    await async_client.post("/api/v1/profiles/star/follow", headers=fan_headers)

    resp = await async_client.get("/api/v1/profiles/fan", headers=star_headers)
    assert resp.json()["profile"]["following"] is False


@pytest.mark.asyncio
async def test_cannot_follow_self(async_client: AsyncClient, register_user, db_session):
    _, headers = await register_user("narcissus")

    resp = await async_client.post("/api/v1/profiles/narcissus/follow", headers=headers)
    assert resp.status_code == 409
    assert resp.json()["message"] == "You cannot follow yourself"
    assert await _follow_rows(db_session) == 0


@pytest.mark.asyncio
async def test_follow_twice_is_rejected(async_client: AsyncClient, register_user, db_session):
    _, headers = await register_user("eager")
    await register_user("idol")

    assert (await async_client.post("/api/v1/profiles/idol/follow", headers=headers)).status_code == 200
    resp = await async_client.post("/api/v1/profiles/idol/follow", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "You are already following this user"
    assert await _follow_rows(db_session) == 1


@pytest.mark.asyncio
async def test_unfollow_when_not_following(async_client: AsyncClient, register_user):
    _, headers = await register_user("stranger")
    await register_user("celebrity")

    resp = await async_client.delete("/api/v1/profiles/celebrity/follow", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "You are not following this user"


@pytest.mark.asyncio
async def test_follow_unknown_user(async_client: AsyncClient, register_user):
    _, headers = await register_user("lonely")
    resp = await async_client.post("/api/v1/profiles/ghost/follow", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_deleting_a_user_removes_their_follows(make_user, db_session):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await profile_service.follow_user(db_session, alice.id, "bob")
    await profile_service.follow_user(db_session, bob.id, "alice")
    assert await profile_service.is_following(db_session, alice.id, bob.id)

    await db_session.execute(delete(User).where(User.id == bob.id))
    assert await _follow_rows(db_session) == 0
