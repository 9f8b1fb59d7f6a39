from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from teleshop.core.config import get_settings
from teleshop.core.exceptions import UnauthorizedError
from teleshop.core.logging import get_logger
from teleshop.core.security import create_user_token
from teleshop.core.telegram import InitDataError, validate_init_data
from teleshop.deps import get_current_user
from teleshop.models.user import User
from teleshop.services import users as user_service

router = APIRouter()
log = get_logger(__name__)


class VerifyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    init_data: str = Field(alias="initData", min_length=1)


def user_out(user: User) -> dict:
    return {
        "id": str(user.id),
        "telegram_id": user.telegram_id,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "is_admin": user.is_admin,
        "balance": user.balance,
        "login_count": user.login_count,
        "created_at": user.created_at.isoformat(),
    }


@router.post("/verify")
async def auth_verify(body: VerifyRequest):
    """Exchange Telegram WebApp initData for a bearer token."""
    settings = get_settings()
    try:
        data = validate_init_data(
            body.init_data,
            settings.telegram_bot_token,
            max_age_seconds=settings.init_data_max_age_seconds,
            allow_dev=settings.allow_dev_auth,
        )
    except InitDataError:
        log.warning("auth_verify_rejected")
        raise UnauthorizedError("Invalid Telegram auth")
    user = await user_service.upsert_user_from_telegram(data["user"])
    token = create_user_token(user_service.session_payload_for_user(user))
    return {"success": True, "token": token, "user": user_out(user)}


@router.api_route("/me", methods=["GET", "POST"])
async def auth_me(user: User = Depends(get_current_user)):
    """Return current user. Requires bearer token."""
    return {"success": True, "user": user_out(user)}


@router.post("/logout")
async def auth_logout(user: User = Depends(get_current_user)):
    """Invalidate all tokens issued for the current user."""
    await user_service.logout(user)
    return {"success": True, "message": "Logged out successfully"}
