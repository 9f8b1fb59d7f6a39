"""Per-user cart; one row per (user, product)."""

from datetime import datetime

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import In, Inc, Set, SetOnInsert
from pymongo.errors import DuplicateKeyError

from teleshop.core.exceptions import BadRequestError, NotFoundError
from teleshop.core.logging import get_logger
from teleshop.core.pagination import parse_object_id
from teleshop.models.cart import CartItem
from teleshop.models.product import Product
from teleshop.services import products as products_service

log = get_logger(__name__)


async def _increment(user_id: PydanticObjectId, product_id: PydanticObjectId, quantity: int, upsert: bool) -> CartItem | None:
    now = datetime.utcnow()
    return await CartItem.find_one(
        CartItem.user_id == user_id,
        CartItem.product_id == product_id,
    ).update(
        Inc({CartItem.quantity: quantity}),
        Set({CartItem.updated_at: now}),
        SetOnInsert({CartItem.created_at: now}),
        upsert=upsert,
        response_type=UpdateResponse.NEW_DOCUMENT,
    )


async def add_to_cart(user_id: PydanticObjectId, product_id: str, quantity: int = 1) -> CartItem:
    """Insert the row or add to its quantity in one atomic upsert."""
    if quantity < 1:
        raise BadRequestError("Quantity must be at least 1")
    product = await products_service.get_product(product_id)
    try:
        item = await _increment(user_id, product.id, quantity, upsert=True)
    except DuplicateKeyError:
        # concurrent upsert inserted first; the row exists now
        item = await _increment(user_id, product.id, quantity, upsert=False)
    log.info("cart_add", user_id=str(user_id), product_id=str(product.id), quantity=item.quantity)
    return item


async def list_cart(user_id: PydanticObjectId) -> list[tuple[CartItem, Product | None]]:
    items = await CartItem.find(CartItem.user_id == user_id).sort(CartItem.created_at).to_list()
    if not items:
        return []
    products = await Product.find(In(Product.id, [i.product_id for i in items])).to_list()
    by_id = {p.id: p for p in products}
    return [(i, by_id.get(i.product_id)) for i in items]


async def update_quantity(user_id: PydanticObjectId, item_id: str, quantity: int) -> CartItem:
    if quantity < 1:
        raise BadRequestError("Quantity must be at least 1")
    item = await CartItem.find_one(
        CartItem.id == parse_object_id(item_id, "Cart item"),
        CartItem.user_id == user_id,
    ).update(
        Set({CartItem.quantity: quantity, CartItem.updated_at: datetime.utcnow()}),
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
    if item is None:
        raise NotFoundError("Cart item not found")
    return item


async def remove_item(user_id: PydanticObjectId, item_id: str) -> None:
    item = await CartItem.find_one(
        CartItem.id == parse_object_id(item_id, "Cart item"),
        CartItem.user_id == user_id,
    )
    if not item:
        raise NotFoundError("Cart item not found")
    await item.delete()


async def clear_cart(user_id: PydanticObjectId) -> int:
    result = await CartItem.find(CartItem.user_id == user_id).delete()
    return result.deleted_count if result else 0
