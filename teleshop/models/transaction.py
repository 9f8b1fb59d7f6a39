from datetime import datetime
from typing import Literal

from beanie import Document, PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["deposit", "withdrawal", "purchase", "refund"]
TransactionStatus = Literal["pending", "completed", "failed"]


class PaymentMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payment_method: str | None = Field(default=None, max_length=50)
    order_id: str | None = Field(default=None, max_length=200)  # external order id the user paid against
    screenshot_url: str | None = Field(default=None, max_length=2000)
    submitted_at: datetime | None = None


class Transaction(Document):
    user_id: PydanticObjectId
    type: TransactionType
    amount: float  # always positive; sign implied by type
    description: str | None = None
    status: TransactionStatus = "pending"
    metadata: PaymentMetadata = Field(default_factory=PaymentMetadata)
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "transactions"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
            [("status", 1), ("created_at", -1)],
        ]
