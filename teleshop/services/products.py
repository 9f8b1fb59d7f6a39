"""Product catalog CRUD."""

import re
from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from beanie.operators import Or, RegEx

from teleshop.core.audit import admin_actor, log_event
from teleshop.core.exceptions import NotFoundError
from teleshop.core.pagination import parse_object_id
from teleshop.models.cart import CartItem
from teleshop.models.product import Product

UPDATABLE_FIELDS = ("name", "description", "category", "image_url", "price", "stock", "featured")


async def list_products(search: str | None = None, category: str | None = None) -> list[Product]:
    conditions = []
    if search:
        pattern = re.escape(search.strip())
        conditions.append(Or(RegEx(Product.name, pattern, "i"), RegEx(Product.description, pattern, "i")))
    if category:
        conditions.append(Product.category == category)
    return await Product.find(*conditions).sort(-Product.created_at).to_list()


async def list_featured() -> list[Product]:
    return await Product.find(Product.featured == True).sort(-Product.created_at).to_list()  # noqa: E712


async def get_product(product_id: str | PydanticObjectId) -> Product:
    product = await Product.get(parse_object_id(product_id, "Product"))
    if not product:
        raise NotFoundError("Product not found")
    return product


async def create_product(data: dict[str, Any], admin_username: str) -> Product:
    product = Product(**data)
    await product.insert()
    await log_event(admin_actor(admin_username), "product_created", "product", str(product.id), {"name": product.name})
    return product


async def update_product(product_id: str, changes: dict[str, Any], admin_username: str) -> Product:
    product = await get_product(product_id)
    for field in UPDATABLE_FIELDS:
        if field in changes:
            setattr(product, field, changes[field])
    product.updated_at = datetime.utcnow()
    await product.save()
    await log_event(
        admin_actor(admin_username),
        "product_updated",
        "product",
        str(product.id),
        {"fields": sorted(k for k in changes if k in UPDATABLE_FIELDS)},
    )
    return product


async def delete_product(product_id: str, admin_username: str) -> None:
    """Remove the product and any cart rows pointing at it. Fulfillment history is kept."""
    product = await get_product(product_id)
    await product.delete()
    await CartItem.find(CartItem.product_id == product.id).delete()
    await log_event(admin_actor(admin_username), "product_deleted", "product", str(product.id), {"name": product.name})


async def count_products() -> int:
    return await Product.find().count()
