from datetime import datetime
from typing import Literal

from beanie import Document, PydanticObjectId
from pydantic import Field

ChangeType = Literal["admin_direct", "transaction_approval"]


class BalanceLog(Document):
    user_id: PydanticObjectId
    admin: str | None = None
    previous_balance: float
    new_balance: float
    change_amount: float
    reason: str
    change_type: ChangeType
    transaction_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "balance_logs"
        indexes = [
            [("user_id", 1), ("created_at", -1)],
            [("change_type", 1), ("created_at", -1)],
        ]
