from fastapi import APIRouter, Depends

from teleshop.deps import get_current_user
from teleshop.models.sent_product import SentProduct
from teleshop.models.user import User
from teleshop.services import fulfillment as fulfillment_service

router = APIRouter()


def sent_product_out(s: SentProduct) -> dict:
    return {
        "id": str(s.id),
        "user_id": str(s.user_id),
        "product_id": str(s.product_id),
        "product_name": s.product_name,
        "credentials": {
            "username": s.username,
            "password": s.password,
            "instructions": s.instructions,
        },
        "is_active": s.is_active,
        "sent_at": s.sent_at.isoformat(),
    }


@router.get("/products")
async def user_products(user: User = Depends(get_current_user)):
    """Products delivered to the current user (My Products)."""
    items = await fulfillment_service.list_user_products(user.id)
    return {"products": [sent_product_out(s) for s in items]}


@router.get("/balance")
async def user_balance(user: User = Depends(get_current_user)):
    return {"balance": user.balance}
