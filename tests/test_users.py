"""
User account tests: multipart profile update, image upload and listing.

Uploads go to a per-test temporary directory through the
``image_storage`` fixture.
"""
from pathlib import Path

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError

from blog_api.schemas import UserUpdate
from blog_api.services import user_service
from blog_api.storage import LocalImageStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _stored_path(storage, url: str) -> Path:
    assert url.startswith(storage.url_prefix)
    return Path(storage._upload_dir) / url[len(storage.url_prefix):]


@pytest.mark.asyncio
async def test_update_profile_fields(async_client: AsyncClient, register_user, image_storage):
    _, headers = await register_user("grace")

    resp = await async_client.put(
        "/api/v1/users",
        data={"bio": "Compiler enthusiast", "username": "hopper"},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["bio"] == "Compiler enthusiast"
    assert data["username"] == "hopper"
    assert data["email"] == "grace@example.com"


@pytest.mark.asyncio
async def test_update_password_allows_new_login(async_client: AsyncClient, register_user, image_storage):
    _, headers = await register_user("heidi")

    resp = await async_client.put("/api/v1/users", data={"password": "NewPass456!"}, headers=headers)
    assert resp.status_code == 200

    login = await async_client.post("/api/v1/auth/login", json={
        "email": "heidi@example.com", "password": "NewPass456!",
    })
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_upload_image_replaces_previous_file(
    async_client: AsyncClient, register_user, image_storage
):
    _, headers = await register_user("ivan")

    first = await async_client.put(
        "/api/v1/users",
        files={"image": ("avatar.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert first.status_code == 200
    first_url = first.json()["image"]
    first_path = _stored_path(image_storage, first_url)
    assert first_path.suffix == ".png"
    assert first_path.read_bytes() == PNG_BYTES

    second = await async_client.put(
        "/api/v1/users",
        files={"image": ("avatar2.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert second.status_code == 200
    second_url = second.json()["image"]
    assert second_url != first_url
    assert _stored_path(image_storage, second_url).is_file()
    assert not first_path.exists()


@pytest.mark.asyncio
async def test_upload_rejects_non_image(async_client: AsyncClient, register_user, image_storage):
    _, headers = await register_user("judy")

    resp = await async_client.put(
        "/api/v1/users",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Image must be a JPEG, PNG, GIF or WEBP file"


@pytest.mark.asyncio
async def test_update_email_conflict(async_client: AsyncClient, register_user, image_storage):
    await register_user("kim")
    _, headers = await register_user("lee")

    resp = await async_client.put(
        "/api/v1/users", data={"email": "kim@example.com"}, headers=headers
    )
    assert resp.status_code == 409
    assert resp.json()["message"] == "Email has already been taken"


@pytest.mark.asyncio
async def test_update_keeping_own_email_is_allowed(
    async_client: AsyncClient, register_user, image_storage
):
    _, headers = await register_user("mallory")
    resp = await async_client.put(
        "/api/v1/users", data={"email": "mallory@example.com"}, headers=headers
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_update_invalid_email(async_client: AsyncClient, register_user, image_storage):
    _, headers = await register_user("niaj")
    resp = await async_client.put("/api/v1/users", data={"email": "nope"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"
    assert resp.json()["errors"][0]["msg"] == "Email must be a valid email address"

    resp = await async_client.put(
        "/api/v1/users",
        data={"password": "123"},
        headers={**headers, "Accept-Language": "vi"},
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["msg"] == "Mật khẩu phải có ít nhất 6 ký tự"


@pytest.mark.asyncio
async def test_list_users_paginated(async_client: AsyncClient, register_user):
    _, headers = await register_user("user0")
    for i in range(1, 5):
        await register_user(f"user{i}")

    resp = await async_client.get("/api/v1/users?page=2&limit=2", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 5
    assert [u["username"] for u in data["users"]] == ["user2", "user1"]
    assert all("passwordHash" not in u for u in data["users"])


@pytest.mark.asyncio
async def test_failed_update_removes_new_image(db_session, make_user, tmp_path, monkeypatch):
    await make_user("taken")
    user = await make_user("olivia")
    storage = LocalImageStorage(str(tmp_path / "images"), "http://test")

    # Skip the pre-check so the unique index rejects the flush.
    async def _never_taken(*args, **kwargs):
        return False

    monkeypatch.setattr(user_service, "_username_taken", _never_taken)

    with pytest.raises(IntegrityError):
        await user_service.update_user(
            db_session, user, UserUpdate(username="taken"), storage, (PNG_BYTES, "a.png")
        )
    assert list((tmp_path / "images").iterdir()) == []
