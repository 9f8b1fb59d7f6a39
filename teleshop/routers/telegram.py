import hmac

from aiogram.types import Update
from fastapi import APIRouter, Header, Request

from teleshop.core.config import get_settings
from teleshop.core.exceptions import BadRequestError, UnauthorizedError
from teleshop.core.logging import get_logger

router = APIRouter()
log = get_logger(__name__)


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: str | None = Header(None),
):
    """Telegram webhook: hand the update to the dispatcher. No-op when the bot is disabled."""
    secret = get_settings().telegram_webhook_secret
    if secret and not hmac.compare_digest(
        (x_telegram_bot_api_secret_token or "").encode("utf-8"), secret.encode("utf-8")
    ):
        raise UnauthorizedError("Invalid webhook secret")
    bot = getattr(request.app.state, "bot", None)
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if bot is None or dispatcher is None:
        return {"ok": True, "bot": "disabled"}
    try:
        update = Update.model_validate(await request.json(), context={"bot": bot})
    except ValueError:
        # malformed JSON or not a Telegram update
        log.warning("webhook_bad_update")
        raise BadRequestError("Invalid update")
    await dispatcher.feed_update(bot, update)
    return {"ok": True}
