"""Admin dashboard aggregates and admin eligibility."""

from teleshop.core.config import get_settings
from teleshop.core.logging import get_logger
from teleshop.core.security import load_admin_token, load_user_token
from teleshop.models.transaction import Transaction
from teleshop.models.user import User
from teleshop.services import products as products_service
from teleshop.services import transactions as transactions_service

log = get_logger(__name__)


async def total_revenue() -> float:
    rows = await Transaction.find(
        Transaction.status == "completed",
        Transaction.type == "deposit",
    ).aggregate([{"$group": {"_id": None, "total": {"$sum": "$amount"}}}]).to_list()
    return round(rows[0]["total"], 2) if rows else 0.0


async def get_stats() -> dict:
    return {
        "total_users": await User.find().count(),
        "total_products": await products_service.count_products(),
        "total_revenue": await total_revenue(),
        "pending_transactions": await transactions_service.count_pending(),
    }


async def check_eligibility(token: str | None) -> dict:
    """
    Whether the bearer may see the admin login: already an admin session,
    a whitelisted Telegram id, or a user flagged is_admin.
    """
    if not token:
        return {"eligible": False, "is_admin": False}
    if load_admin_token(token):
        return {"eligible": True, "is_admin": True}
    payload = load_user_token(token)
    if not payload:
        return {"eligible": False, "is_admin": False}
    if payload.get("telegram_id") in get_settings().admin_whitelist:
        return {"eligible": True, "is_admin": False}
    user = await User.find_one(User.telegram_id == payload.get("telegram_id"))
    return {"eligible": bool(user and user.is_admin), "is_admin": False}
