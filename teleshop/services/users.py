from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from beanie.operators import Inc, Set
from pymongo.errors import DuplicateKeyError

from teleshop.core.audit import log_event
from teleshop.core.exceptions import BadRequestError, NotFoundError
from teleshop.core.logging import get_logger
from teleshop.models.user import User

log = get_logger(__name__)


def _profile_from_telegram(tg_user: dict[str, Any]) -> dict[str, Any]:
    return {
        "username": tg_user.get("username"),
        "first_name": tg_user.get("first_name"),
        "last_name": tg_user.get("last_name"),
    }


async def upsert_user_from_telegram(tg_user: dict[str, Any]) -> User:
    """Create the user on first login, otherwise refresh profile and bump login_count."""
    telegram_id = str(tg_user.get("id") or "").strip()
    if not telegram_id:
        raise BadRequestError("Missing Telegram user id")
    profile = _profile_from_telegram(tg_user)
    now = datetime.utcnow()

    user = await User.find_one(User.telegram_id == telegram_id)
    if user is None:
        user = User(telegram_id=telegram_id, login_count=1, last_login_at=now, **profile)
        try:
            await user.insert()
        except DuplicateKeyError:
            # lost the race against a concurrent first login
            user = await User.find_one(User.telegram_id == telegram_id)
        else:
            log.info("user_created", user_id=str(user.id), telegram_id=telegram_id)
            await log_event(str(user.id), "user_created", "user", str(user.id), {"telegram_id": telegram_id})
            return user

    await user.update(
        Set({
            User.username: profile["username"],
            User.first_name: profile["first_name"],
            User.last_name: profile["last_name"],
            User.last_login_at: now,
            User.updated_at: now,
        }),
        Inc({User.login_count: 1}),
    )
    log.info("user_login", user_id=str(user.id), telegram_id=telegram_id, login_count=user.login_count)
    await log_event(str(user.id), "user_login", "user", str(user.id), {"login_count": user.login_count})
    return user


async def get_user(user_id: PydanticObjectId) -> User:
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def list_users(limit: int = 100, offset: int = 0) -> list[User]:
    return await User.find().sort(-User.created_at).skip(offset).limit(limit).to_list()


async def logout(user: User) -> None:
    """Invalidate every token issued so far for this user."""
    await user.update(Inc({User.session_version: 1}), Set({User.updated_at: datetime.utcnow()}))
    log.info("user_logout", user_id=str(user.id))


def session_payload_for_user(user: User) -> dict:
    return {
        "user_id": str(user.id),
        "telegram_id": user.telegram_id,
        "session_version": user.session_version,
    }
