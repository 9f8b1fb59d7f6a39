"""Atomic balance mutation, balance history and reconciliation."""

from datetime import datetime

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import Inc, Set

from teleshop.core.audit import admin_actor, log_event
from teleshop.core.exceptions import BadRequestError, NotFoundError
from teleshop.core.logging import get_logger
from teleshop.models.balance_log import BalanceLog, ChangeType
from teleshop.models.transaction import Transaction
from teleshop.models.user import User

log = get_logger(__name__)

CREDIT_TYPES = ("deposit", "refund")
DEBIT_TYPES = ("purchase", "withdrawal")

# balances are floats; anything below a cent is rounding noise
_EPSILON = 0.005


def signed_amount(tx_type: str, amount: float) -> float:
    if tx_type in CREDIT_TYPES:
        return amount
    if tx_type in DEBIT_TYPES:
        return -amount
    raise BadRequestError(f"Invalid transaction type: {tx_type}")


async def apply_delta(user_id: PydanticObjectId, delta: float) -> tuple[float, float] | None:
    """
    Add delta to the user's balance in a single $inc.
    Debits only match when the balance covers them, so the balance never goes negative.
    Returns (previous_balance, new_balance), or None when nothing matched.
    """
    if delta < 0:
        query = User.find_one(User.id == user_id, User.balance >= -delta)
    else:
        query = User.find_one(User.id == user_id)
    updated = await query.update(
        Inc({User.balance: delta}),
        Set({User.updated_at: datetime.utcnow()}),
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
    if updated is None:
        return None
    return updated.balance - delta, updated.balance


async def set_balance(
    user_id: PydanticObjectId,
    new_balance: float,
    reason: str,
    admin_username: str,
) -> tuple[float, float]:
    """Admin direct adjustment. Returns (previous_balance, new_balance)."""
    if new_balance < 0:
        raise BadRequestError("Balance cannot be negative")
    if not reason.strip():
        raise BadRequestError("Reason is required")
    new_balance = round(new_balance, 2)
    before = await User.find_one(User.id == user_id).update(
        Set({User.balance: new_balance, User.updated_at: datetime.utcnow()}),
        response_type=UpdateResponse.OLD_DOCUMENT,
    )
    if before is None:
        raise NotFoundError("User not found")
    await log_change(
        user_id,
        before.balance,
        new_balance,
        reason=reason,
        change_type="admin_direct",
        admin=admin_username,
    )
    await log_event(
        admin_actor(admin_username),
        "balance_set",
        "user",
        str(user_id),
        {"previous_balance": before.balance, "new_balance": new_balance, "reason": reason},
    )
    return before.balance, new_balance


async def log_change(
    user_id: PydanticObjectId,
    previous_balance: float,
    new_balance: float,
    reason: str,
    change_type: ChangeType,
    admin: str | None = None,
    transaction_id: str | None = None,
) -> BalanceLog:
    entry = BalanceLog(
        user_id=user_id,
        admin=admin,
        previous_balance=previous_balance,
        new_balance=new_balance,
        change_amount=round(new_balance - previous_balance, 2),
        reason=reason,
        change_type=change_type,
        transaction_id=transaction_id,
    )
    await entry.insert()
    log.info(
        "balance_changed",
        user_id=str(user_id),
        change_amount=entry.change_amount,
        change_type=change_type,
        transaction_id=transaction_id,
    )
    return entry


async def list_balance_logs(user_id: PydanticObjectId | None = None, limit: int = 50) -> list[BalanceLog]:
    query = BalanceLog.find(BalanceLog.user_id == user_id) if user_id else BalanceLog.find()
    return await query.sort(-BalanceLog.created_at).limit(limit).to_list()


async def reconcile_user(user_id: PydanticObjectId) -> dict:
    """Compare the stored balance with completed transactions plus admin adjustments."""
    user = await User.get(user_id)
    if not user:
        raise NotFoundError("User not found")
    totals = await Transaction.find(
        Transaction.user_id == user_id,
        Transaction.status == "completed",
    ).aggregate([{"$group": {"_id": "$type", "total": {"$sum": "$amount"}}}]).to_list()
    by_type = {row["_id"]: row["total"] for row in totals}
    credits = sum(by_type.get(t, 0.0) for t in CREDIT_TYPES)
    debits = sum(by_type.get(t, 0.0) for t in DEBIT_TYPES)

    adjustments = await BalanceLog.find(
        BalanceLog.user_id == user_id,
        BalanceLog.change_type == "admin_direct",
    ).aggregate([{"$group": {"_id": None, "total": {"$sum": "$change_amount"}}}]).to_list()
    adjusted = adjustments[0]["total"] if adjustments else 0.0

    expected = round(credits - debits + adjusted, 2)
    return {
        "user_id": str(user_id),
        "balance": user.balance,
        "expected_balance": expected,
        "completed_credits": round(credits, 2),
        "completed_debits": round(debits, 2),
        "admin_adjustments": round(adjusted, 2),
        "consistent": abs(expected - user.balance) < _EPSILON,
    }
