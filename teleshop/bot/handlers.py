from aiogram import F, Router, html
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, Message

from teleshop.bot.keyboards import CALLBACK_MESSAGES, MESSAGES, build_keyboard
from teleshop.core.config import get_settings
from teleshop.core.logging import get_logger

log = get_logger(__name__)

MENU_CALLBACKS = ("store", "wallet", "help")


async def cmd_start(message: Message) -> None:
    settings = get_settings()
    name = html.quote(message.from_user.first_name) if message.from_user else "User"
    await message.answer(
        MESSAGES["start"].format(name=name),
        reply_markup=build_keyboard("start", settings.webapp_url, settings.support_url),
    )


async def cmd_section(message: Message, section: str) -> None:
    settings = get_settings()
    await message.answer(
        MESSAGES[section],
        reply_markup=build_keyboard(section, settings.webapp_url, settings.support_url),
    )


async def cmd_store(message: Message) -> None:
    await cmd_section(message, "store")


async def cmd_wallet(message: Message) -> None:
    await cmd_section(message, "wallet")


async def cmd_admin(message: Message) -> None:
    await cmd_section(message, "admin")


async def cmd_help(message: Message) -> None:
    await cmd_section(message, "help")


async def on_menu_callback(callback: CallbackQuery) -> None:
    section = callback.data
    if isinstance(callback.message, Message):
        markup = None
        if section != "help":
            markup = build_keyboard(section, get_settings().webapp_url)
        await callback.message.answer(CALLBACK_MESSAGES[section], reply_markup=markup)
    await callback.answer()


def build_router() -> Router:
    """Fresh router per dispatcher; aiogram routers attach to a single parent."""
    router = Router(name="teleshop")
    router.message.register(cmd_start, CommandStart())
    router.message.register(cmd_store, Command("store"))
    router.message.register(cmd_wallet, Command("wallet"))
    router.message.register(cmd_admin, Command("admin"))
    router.message.register(cmd_help, Command("help"))
    router.callback_query.register(on_menu_callback, F.data.in_(MENU_CALLBACKS))
    return router
