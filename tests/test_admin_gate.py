"""Auth gates and request validation that never reach the database."""

import time

import pytest
from itsdangerous import TimestampSigner

from teleshop.core.config import get_settings
from teleshop.core.security import create_admin_token, create_user_token
from teleshop.main import app

pytestmark = pytest.mark.asyncio


async def test_admin_route_without_token(client):
    r = await client.get("/api/admin/stats")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"
    assert r.headers["WWW-Authenticate"] == "Bearer"


async def test_admin_route_with_garbage_token(client):
    r = await client.get("/api/admin/stats", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401


async def test_admin_route_with_user_token(client):
    token = create_user_token({"user_id": "65f000000000000000000001", "session_version": 0})
    r = await client.post(
        "/api/admin/transactions/65f000000000000000000002/approve",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"


async def test_user_route_without_token(client):
    r = await client.get("/api/auth/me")
    assert r.status_code == 401
    r = await client.get("/api/cart")
    assert r.status_code == 401


async def test_user_route_rejects_admin_token(client, admin_token):
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {admin_token}"})
    assert r.status_code == 401


async def test_admin_login_wrong_password(client):
    r = await client.post("/api/admin/login", json={"username": "admin", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid credentials"


async def test_admin_login_wrong_username(client):
    r = await client.post("/api/admin/login", json={"username": "root", "password": "s3cret-admin-pass"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid credentials"


async def test_verify_requires_init_data(client):
    r = await client.post("/api/auth/verify", json={})
    assert r.status_code == 400
    body = r.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["errors"][0]["field"] == "initData"


async def test_verify_rejects_unknown_fields(client):
    r = await client.post("/api/auth/verify", json={"initData": "x=1", "admin": True})
    assert r.status_code == 400


async def test_verify_rejects_bad_signature(client):
    r = await client.post("/api/auth/verify", json={"initData": "auth_date=1&user=%7B%7D&hash=abc"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid Telegram auth"


async def test_verify_rejects_dev_sentinel_when_disabled(client):
    r = await client.post("/api/auth/verify", json={"initData": "hash=dev_mock_hash"})
    assert r.status_code == 401


async def test_check_eligibility_without_token(client):
    r = await client.get("/api/admin/check-eligibility")
    assert r.status_code == 200
    assert r.json()["eligible"] is False


async def test_expired_admin_token(client, monkeypatch):
    issued = int(time.time() - 9 * 3600)
    monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued)
    token = create_admin_token("admin")
    monkeypatch.undo()
    r = await client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


@pytest.mark.parametrize(
    "path,method,body",
    [
        ("/api/admin/users/65f000000000000000000001/balance", "PUT", '{"balance": Infinity, "reason": "x"}'),
        ("/api/admin/products", "POST", '{"name": "X", "price": Infinity}'),
        ("/api/admin/products/65f000000000000000000001", "PUT", '{"price": NaN}'),
    ],
)
async def test_non_finite_numbers_rejected(client, admin_headers, path, method, body):
    r = await client.request(
        method,
        path,
        content=body,
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_webhook_wrong_secret(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "telegram_webhook_secret", "hook-secret")
    r = await client.post("/api/webhook", json={"update_id": 1}, headers={"X-Telegram-Bot-Api-Secret-Token": "nope"})
    assert r.status_code == 401
    r = await client.post("/api/webhook", json={"update_id": 1})
    assert r.status_code == 401


async def test_webhook_without_bot(client):
    r = await client.post("/api/webhook", json={"update_id": 1})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "bot": "disabled"}


async def test_webhook_malformed_update(client, monkeypatch):
    monkeypatch.setattr(app.state, "bot", object(), raising=False)
    monkeypatch.setattr(app.state, "dispatcher", object(), raising=False)
    r = await client.post("/api/webhook", json={"update_id": "not-a-number"})
    assert r.status_code == 400
    r = await client.post("/api/webhook", content="{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
