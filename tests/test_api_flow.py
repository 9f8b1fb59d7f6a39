"""Mini-app flow over HTTP: sign in, request a deposit, admin approves once."""

import time

import pytest

from teleshop.core.telegram import sign_init_data

BOT_TOKEN = "123456:TEST-bot-token"
ADMIN_PASSWORD = "s3cret-admin-pass"

pytestmark = pytest.mark.asyncio


def _init_data(telegram_id: int = 555000111) -> str:
    return sign_init_data(
        {"auth_date": int(time.time()), "user": {"id": telegram_id, "first_name": "Flow", "username": "flow"}},
        BOT_TOKEN,
    )


async def _sign_in(client) -> dict:
    r = await client.post("/api/auth/verify", json={"initData": _init_data()})
    assert r.status_code == 200, r.text
    body = r.json()
    return {"Authorization": f"Bearer {body['token']}"}


async def _admin(client) -> dict:
    r = await client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


async def test_verify_creates_then_updates_user(client, db):
    r = await client.post("/api/auth/verify", json={"initData": _init_data()})
    assert r.json()["user"]["login_count"] == 1
    r = await client.post("/api/auth/verify", json={"initData": _init_data()})
    assert r.json()["user"]["login_count"] == 2
    assert r.json()["user"]["telegram_id"] == "555000111"


async def test_deposit_approved_exactly_once(client, db):
    user_headers = await _sign_in(client)
    admin_headers = await _admin(client)

    r = await client.post(
        "/api/transactions",
        json={"type": "deposit", "amount": 50, "metadata": {"payment_method": "binance_pay", "order_id": "A1"}},
        headers=user_headers,
    )
    assert r.status_code == 200
    tx = r.json()
    assert tx["status"] == "pending"

    r = await client.get("/api/user/balance", headers=user_headers)
    assert r.json() == {"balance": 0.0}

    r = await client.post(f"/api/admin/transactions/{tx['id']}/approve", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["user_balance"] == 50

    r = await client.post(f"/api/admin/transactions/{tx['id']}/approve", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT"

    r = await client.get("/api/auth/me", headers=user_headers)
    assert r.json()["user"]["balance"] == 50

    r = await client.get("/api/admin/stats", headers=admin_headers)
    stats = r.json()
    assert stats["total_users"] == 1
    assert stats["total_revenue"] == 50
    assert stats["pending_transactions"] == 0


async def test_transaction_body_validation(client, db):
    user_headers = await _sign_in(client)
    r = await client.post("/api/transactions", json={"type": "deposit", "amount": -1}, headers=user_headers)
    assert r.status_code == 400
    r = await client.post("/api/transactions", json={"type": "gift", "amount": 5}, headers=user_headers)
    assert r.status_code == 400
    r = await client.post(
        "/api/transactions",
        json={"type": "deposit", "amount": 5, "metadata": {"status": "completed"}},
        headers=user_headers,
    )
    assert r.status_code == 400


async def test_cart_over_http(client, product):
    user_headers = await _sign_in(client)
    for qty in (1, 2):
        r = await client.post("/api/cart", json={"product_id": str(product.id), "quantity": qty}, headers=user_headers)
        assert r.status_code == 200
    r = await client.get("/api/cart", headers=user_headers)
    body = r.json()
    assert len(body["items"]) == 1
    assert body["items"][0]["quantity"] == 3
    assert body["total"] == round(9.99 * 3, 2)


async def test_admin_product_crud_and_fulfillment(client, db):
    admin_headers = await _admin(client)
    user_headers = await _sign_in(client)

    r = await client.post(
        "/api/admin/products",
        json={"name": "Disney+", "price": 7.99, "stock": 5, "image_url": "https://cdn.example/d.png"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    product = r.json()

    r = await client.put(f"/api/admin/products/{product['id']}", json={"price": 6.99}, headers=admin_headers)
    assert r.json()["price"] == 6.99
    r = await client.put(f"/api/admin/products/{product['id']}", json={"name": None}, headers=admin_headers)
    assert r.status_code == 400

    me = (await client.get("/api/auth/me", headers=user_headers)).json()["user"]
    r = await client.post(
        "/api/admin/send-product",
        json={"user_id": me["id"], "product_id": product["id"], "username": "d@example.com", "password": "pw"},
        headers=admin_headers,
    )
    assert r.status_code == 200

    r = await client.get("/api/user/products", headers=user_headers)
    items = r.json()["products"]
    assert items[0]["product_name"] == "Disney+"
    assert items[0]["credentials"]["username"] == "d@example.com"

    r = await client.delete(f"/api/admin/products/{product['id']}", headers=admin_headers)
    assert r.status_code == 200
    r = await client.get(f"/api/products/{product['id']}")
    assert r.status_code == 404
    r = await client.get("/api/products/not-an-id")
    assert r.status_code == 404
