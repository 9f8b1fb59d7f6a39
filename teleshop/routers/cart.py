from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from teleshop.deps import get_current_user
from teleshop.models.cart import CartItem
from teleshop.models.product import Product
from teleshop.models.user import User
from teleshop.routers.products import product_out
from teleshop.services import cart as cart_service

router = APIRouter()


class CartAdd(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: str
    quantity: int = Field(default=1, ge=1)


class CartUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(ge=1)


def cart_item_out(item: CartItem, product: Product | None = None) -> dict:
    out = {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "quantity": item.quantity,
        "created_at": item.created_at.isoformat(),
        "updated_at": item.updated_at.isoformat(),
    }
    if product is not None:
        out["product"] = product_out(product)
    return out


@router.get("")
async def cart_list(user: User = Depends(get_current_user)):
    """Cart rows with product details; rows whose product vanished carry no product."""
    rows = await cart_service.list_cart(user.id)
    total = sum(p.price * i.quantity for i, p in rows if p is not None)
    return {"items": [cart_item_out(i, p) for i, p in rows], "total": round(total, 2)}


@router.post("")
async def cart_add(body: CartAdd, user: User = Depends(get_current_user)):
    item = await cart_service.add_to_cart(user.id, body.product_id, body.quantity)
    return cart_item_out(item)


@router.put("/{item_id}")
async def cart_update(item_id: str, body: CartUpdate, user: User = Depends(get_current_user)):
    item = await cart_service.update_quantity(user.id, item_id, body.quantity)
    return cart_item_out(item)


@router.delete("/{item_id}")
async def cart_remove(item_id: str, user: User = Depends(get_current_user)):
    await cart_service.remove_item(user.id, item_id)
    return {"message": "Item removed from cart"}


@router.delete("")
async def cart_clear(user: User = Depends(get_current_user)):
    removed = await cart_service.clear_cart(user.id)
    return {"message": "Cart cleared", "removed": removed}
