from datetime import datetime

from beanie import Document
from pydantic import Field


class Product(Document):
    name: str
    description: str | None = None
    category: str | None = None
    image_url: str | None = None
    price: float
    stock: int = 0
    featured: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "products"
        indexes = [
            [("category", 1)],
            [("featured", 1), ("created_at", -1)],
        ]
