import pytest

pytestmark = pytest.mark.asyncio


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"]


async def test_api_health_without_context(client):
    """No lifespan ran: no bot and no database client on app.state."""
    r = await client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["bot"] == "disabled"
    assert body["database"] == "unavailable"
    assert "timestamp" in body


async def test_request_id_is_echoed(client):
    r = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"


@pytest.mark.parametrize(
    "module",
    ["teleshop.services.balances", "teleshop.services.cart", "teleshop.services.transactions"],
)
async def test_service_modules_import(module):
    import importlib

    assert importlib.import_module(module).UpdateResponse.NEW_DOCUMENT
