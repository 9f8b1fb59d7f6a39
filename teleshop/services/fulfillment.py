"""Manual delivery of purchased products (credentials) to users."""

from aiogram import Bot
from beanie import PydanticObjectId

from teleshop.bot.notifications import notify_product_sent
from teleshop.core.audit import admin_actor, log_event
from teleshop.core.exceptions import BadRequestError
from teleshop.core.logging import get_logger
from teleshop.core.pagination import parse_object_id
from teleshop.models.sent_product import SentProduct
from teleshop.services import products as products_service
from teleshop.services import users as users_service

log = get_logger(__name__)


async def send_product(
    admin_username: str,
    user_id: str,
    product_id: str,
    username: str,
    password: str,
    instructions: str = "",
    ip_address: str = "",
    user_agent: str = "",
    bot: Bot | None = None,
) -> SentProduct:
    if not username.strip() or not password:
        raise BadRequestError("Username and password are required")
    user = await users_service.get_user(parse_object_id(user_id, "User"))
    product = await products_service.get_product(product_id)
    sent = SentProduct(
        user_id=user.id,
        product_id=product.id,
        product_name=product.name,
        username=username.strip(),
        password=password,
        instructions=instructions or "",
        sent_by=admin_username,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    await sent.insert()
    # credentials stay out of logs and audit metadata
    await log_event(
        admin_actor(admin_username),
        "product_sent",
        "sent_product",
        str(sent.id),
        {"user_id": str(user.id), "product_id": str(product.id), "product_name": product.name},
    )
    log.info("product_sent", user_id=str(user.id), product_id=str(product.id), sent_product_id=str(sent.id))
    await notify_product_sent(bot, user.telegram_id, product.name)
    return sent


async def list_user_products(user_id: PydanticObjectId) -> list[SentProduct]:
    return await (
        SentProduct.find(SentProduct.user_id == user_id, SentProduct.is_active == True)  # noqa: E712
        .sort(-SentProduct.sent_at)
        .to_list()
    )


async def list_sent_products(user_id: PydanticObjectId | None = None, limit: int = 50) -> list[SentProduct]:
    query = SentProduct.find(SentProduct.user_id == user_id) if user_id else SentProduct.find()
    return await query.sort(-SentProduct.sent_at).limit(limit).to_list()
