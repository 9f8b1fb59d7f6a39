import pytest

from teleshop.core.exceptions import BadRequestError
from teleshop.core.security import create_user_token
from teleshop.models.user import User
from teleshop.services import users as users_service

pytestmark = pytest.mark.asyncio


async def test_first_login_creates_user(db):
    user = await users_service.upsert_user_from_telegram({"id": 1001, "username": "alice", "first_name": "Alice"})
    assert user.telegram_id == "1001"
    assert user.login_count == 1
    assert user.balance == 0
    assert user.is_admin is False


async def test_repeat_login_refreshes_profile(db):
    await users_service.upsert_user_from_telegram({"id": 1001, "username": "alice"})
    user = await users_service.upsert_user_from_telegram({"id": 1001, "username": "alice_new"})
    assert user.login_count == 2
    stored = await User.find_one(User.telegram_id == "1001")
    assert stored.username == "alice_new"
    assert stored.login_count == 2
    assert await User.find().count() == 1


async def test_missing_telegram_id(db):
    with pytest.raises(BadRequestError):
        await users_service.upsert_user_from_telegram({"username": "nobody"})


async def test_me_and_logout(client, user, user_headers):
    r = await client.get("/api/auth/me", headers=user_headers)
    assert r.status_code == 200
    assert r.json()["user"]["telegram_id"] == "424242"

    r = await client.post("/api/auth/logout", headers=user_headers)
    assert r.status_code == 200

    r = await client.get("/api/auth/me", headers=user_headers)
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Session invalidated"


async def test_token_for_deleted_user(client, user, user_headers):
    await user.delete()
    r = await client.get("/api/auth/me", headers=user_headers)
    assert r.status_code == 401


async def test_stale_session_version(client, user):
    token = create_user_token({**users_service.session_payload_for_user(user), "session_version": 5})
    r = await client.get("/api/user/balance", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
