"""Admin credential check and admin token issuance."""

import hmac
from functools import lru_cache

from teleshop.core.audit import admin_actor, log_event
from teleshop.core.config import get_settings
from teleshop.core.exceptions import UnauthorizedError
from teleshop.core.logging import get_logger
from teleshop.core.security import create_admin_token, hash_password, verify_password

log = get_logger(__name__)


@lru_cache
def get_admin_password_hash() -> str:
    settings = get_settings()
    if settings.admin_password_hash:
        return settings.admin_password_hash
    log.warning("admin_password_hash_missing", msg="ADMIN_PASSWORD_HASH not set; hashing ADMIN_PASSWORD at startup")
    return hash_password(settings.admin_password)


async def login(username: str, password: str) -> str:
    """Return an admin token or raise UnauthorizedError with a uniform message."""
    settings = get_settings()
    username_ok = hmac.compare_digest(username.encode("utf-8"), settings.admin_username.encode("utf-8"))
    # bcrypt runs for every attempt, known username or not
    password_ok = verify_password(password, get_admin_password_hash())
    if not (username_ok and password_ok):
        log.warning("admin_login_failed", username=username)
        raise UnauthorizedError("Invalid credentials")
    await log_event(admin_actor(username), "admin_login", "admin", username)
    log.info("admin_login", username=username)
    return create_admin_token(username)
