from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    telegram_id: Indexed(str, unique=True)
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_admin: bool = False
    balance: float = 0.0
    login_count: int = 0
    session_version: int = 0
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
