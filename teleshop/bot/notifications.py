from aiogram import Bot, html
from aiogram.exceptions import TelegramAPIError

from teleshop.bot.keyboards import MESSAGES, build_keyboard
from teleshop.core.config import get_settings
from teleshop.core.logging import get_logger

log = get_logger(__name__)


async def notify_product_sent(bot: Bot | None, telegram_id: str, product_name: str) -> bool:
    """Tell the user a product was delivered. Never raises; returns whether the message went out."""
    if bot is None:
        return False
    try:
        chat_id = int(telegram_id)
    except ValueError:
        log.warning("notify_skipped", telegram_id=telegram_id, reason="non-numeric chat id")
        return False
    try:
        await bot.send_message(
            chat_id=chat_id,
            text=MESSAGES["products"].format(product=html.quote(product_name)),
            reply_markup=build_keyboard("products", get_settings().webapp_url),
        )
    except TelegramAPIError as e:
        log.warning("notify_failed", telegram_id=telegram_id, error=str(e))
        return False
    return True
