from fastapi import APIRouter, Query

from teleshop.models.product import Product
from teleshop.services import products as products_service

router = APIRouter()


def product_out(p: Product) -> dict:
    return {
        "id": str(p.id),
        "name": p.name,
        "description": p.description,
        "category": p.category,
        "image_url": p.image_url,
        "price": p.price,
        "stock": p.stock,
        "featured": p.featured,
        "created_at": p.created_at.isoformat(),
        "updated_at": p.updated_at.isoformat(),
    }


@router.get("")
async def products_list(
    search: str | None = Query(None, max_length=100),
    category: str | None = Query(None, max_length=100),
):
    """Public catalog; search matches name or description, case-insensitive."""
    items = await products_service.list_products(search=search, category=category)
    return {"products": [product_out(p) for p in items]}


@router.get("/featured")
async def products_featured():
    items = await products_service.list_featured()
    return {"products": [product_out(p) for p in items]}


@router.get("/{product_id}")
async def product_get(product_id: str):
    return product_out(await products_service.get_product(product_id))
