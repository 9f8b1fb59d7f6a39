"""Run the bot with long polling. Usage: python -m teleshop.bot.run_polling"""

import asyncio

from teleshop.bot.core import create_bot, create_dispatcher
from teleshop.core.config import get_settings
from teleshop.core.logging import configure_logging, get_logger

log = get_logger(__name__)


async def main() -> None:
    settings = get_settings()
    configure_logging(debug=settings.debug)
    bot = create_bot(settings)
    if bot is None:
        log.error("bot_disabled", msg="TELEGRAM_BOT_TOKEN not set")
        return
    dp = create_dispatcher()
    # polling and webhooks are mutually exclusive
    await bot.delete_webhook(drop_pending_updates=True)
    log.info("bot_polling_started")
    try:
        await dp.start_polling(bot)
    finally:
        await bot.session.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("bot_stopped")
