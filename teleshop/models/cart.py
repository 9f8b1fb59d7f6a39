from datetime import datetime

import pymongo
from beanie import Document, PydanticObjectId
from pydantic import Field
from pymongo import IndexModel


class CartItem(Document):
    """One row per (user, product); repeated adds increment quantity."""
    user_id: PydanticObjectId
    product_id: PydanticObjectId
    quantity: int = 1
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "carts"
        indexes = [
            IndexModel(
                [("user_id", pymongo.ASCENDING), ("product_id", pymongo.ASCENDING)],
                unique=True,
                name="user_product_unique",
            ),
        ]
