from functools import lru_cache
from typing import Any, List

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_csv(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, list):
        return [str(x).strip() for x in v if str(x).strip()]
    return [x.strip() for x in str(v).split(",") if x.strip()]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        s = str(v).strip()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return _parse_csv(s) or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars", alias="SECRET_KEY")
    admin_secret_key: str | None = Field(default=None, alias="ADMIN_SECRET_KEY")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="teleshop", alias="MONGODB_DB_NAME")

    # Telegram
    telegram_bot_token: str = Field(default="", alias="TELEGRAM_BOT_TOKEN")
    telegram_webhook_secret: str = Field(default="", alias="TELEGRAM_WEBHOOK_SECRET")
    webapp_url: str = Field(default="http://localhost:5173", alias="WEBAPP_URL")
    support_url: str | None = Field(default=None, alias="SUPPORT_URL")
    allow_dev_auth: bool = Field(default=False, alias="ALLOW_DEV_AUTH")
    init_data_max_age_seconds: int = Field(default=24 * 3600, alias="INIT_DATA_MAX_AGE_SECONDS")

    # Sessions
    session_max_age_seconds: int = Field(default=24 * 3600, alias="SESSION_MAX_AGE_SECONDS")
    admin_session_max_age_seconds: int = Field(default=8 * 3600, alias="ADMIN_SESSION_MAX_AGE_SECONDS")

    # Admin credentials
    admin_username: str = Field(default="admin", alias="ADMIN_USERNAME")
    admin_password: str = Field(default="admin123", alias="ADMIN_PASSWORD")
    admin_password_hash: str = Field(default="", alias="ADMIN_PASSWORD_HASH")
    admin_whitelist_raw: str = Field(default="", alias="ADMIN_WHITELIST")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @model_validator(mode="after")
    def _dev_auth_not_in_production(self) -> "Settings":
        if self.allow_dev_auth and self.is_production:
            raise ValueError("ALLOW_DEV_AUTH cannot be enabled when ENV=production")
        return self

    @property
    def is_production(self) -> bool:
        return self.env.lower() in ("production", "prod")

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(self.cors_origins_raw)

    @property
    def admin_whitelist(self) -> List[str]:
        return _parse_csv(self.admin_whitelist_raw)

    @property
    def admin_signing_key(self) -> str:
        return self.admin_secret_key or self.secret_key


@lru_cache
def get_settings() -> Settings:
    return Settings()
