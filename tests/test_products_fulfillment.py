import pytest

from teleshop.core.exceptions import BadRequestError, NotFoundError
from teleshop.models.audit_log import AuditLog
from teleshop.models.cart import CartItem
from teleshop.models.sent_product import SentProduct
from teleshop.services import cart as cart_service
from teleshop.services import fulfillment as fulfillment_service
from teleshop.services import products as products_service

pytestmark = pytest.mark.asyncio


async def test_search_matches_name_or_description(product):
    await products_service.create_product(
        {"name": "Spotify Family", "description": "6 accounts", "category": "music", "price": 14.99, "stock": 3},
        "admin",
    )
    assert [p.name for p in await products_service.list_products(search="netflix")] == ["Netflix Premium"]
    assert [p.name for p in await products_service.list_products(search="ACCOUNTS")] == ["Spotify Family"]
    assert [p.name for p in await products_service.list_products(category="music")] == ["Spotify Family"]


async def test_search_is_literal(product):
    assert await products_service.list_products(search=".*") == []


async def test_featured(product):
    await products_service.update_product(str(product.id), {"featured": True}, "admin")
    featured = await products_service.list_featured()
    assert [p.id for p in featured] == [product.id]


async def test_update_ignores_unknown_fields(product):
    updated = await products_service.update_product(str(product.id), {"price": 12.0, "id": "x"}, "admin")
    assert updated.price == 12.0
    assert updated.id == product.id


async def test_get_missing_product(db):
    with pytest.raises(NotFoundError):
        await products_service.get_product("65f000000000000000000000")


async def test_delete_removes_cart_rows_but_keeps_history(user, product):
    await cart_service.add_to_cart(user.id, str(product.id))
    await fulfillment_service.send_product("admin", str(user.id), str(product.id), "acct@example.com", "pw")
    await products_service.delete_product(str(product.id), "admin")

    assert await CartItem.find(CartItem.product_id == product.id).count() == 0
    history = await fulfillment_service.list_user_products(user.id)
    assert [s.product_name for s in history] == ["Netflix Premium"]


async def test_send_product_records_credentials(user, product):
    sent = await fulfillment_service.send_product(
        "admin",
        str(user.id),
        str(product.id),
        " acct@example.com ",
        "hunter2",
        instructions="Do not change the password",
    )
    assert sent.username == "acct@example.com"
    assert sent.sent_by == "admin"
    assert sent.is_active is True

    audit = await AuditLog.find(AuditLog.event_type == "product_sent").to_list()
    assert len(audit) == 1
    assert "hunter2" not in str(audit[0].metadata)


async def test_send_product_validation(user, product):
    with pytest.raises(BadRequestError):
        await fulfillment_service.send_product("admin", str(user.id), str(product.id), "  ", "pw")
    with pytest.raises(NotFoundError):
        await fulfillment_service.send_product("admin", "65f000000000000000000000", str(product.id), "u", "pw")
    with pytest.raises(NotFoundError):
        await fulfillment_service.send_product("admin", str(user.id), "65f000000000000000000000", "u", "pw")
    assert await SentProduct.find().count() == 0


async def test_inactive_products_hidden_from_user(user, product):
    sent = await fulfillment_service.send_product("admin", str(user.id), str(product.id), "u", "pw")
    sent.is_active = False
    await sent.save()
    assert await fulfillment_service.list_user_products(user.id) == []
    assert len(await fulfillment_service.list_sent_products(user.id)) == 1
