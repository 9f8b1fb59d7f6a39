from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from teleshop.bot.handlers import build_router
from teleshop.core.config import Settings


def create_bot(settings: Settings) -> Bot | None:
    """None when no token is configured; bot features are then disabled."""
    if not settings.telegram_bot_token:
        return None
    return Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def create_dispatcher() -> Dispatcher:
    dp = Dispatcher()
    dp.include_router(build_router())
    return dp
