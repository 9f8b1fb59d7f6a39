from datetime import datetime

from beanie import Document, PydanticObjectId
from pydantic import Field


class SentProduct(Document):
    """Credentials delivered to a user. Written once by an admin, never updated."""
    user_id: PydanticObjectId
    product_id: PydanticObjectId
    product_name: str  # denormalized so history survives product deletion
    username: str
    password: str
    instructions: str = ""
    is_active: bool = True
    sent_by: str | None = None
    ip_address: str = ""
    user_agent: str = ""
    sent_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "sentproducts"
        indexes = [
            [("user_id", 1), ("sent_at", -1)],
            [("sent_at", -1)],
        ]
