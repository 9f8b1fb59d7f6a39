"""
Deposit/purchase requests and their admin review.

A transaction is created pending and never touches the balance. Only an admin
approval moves money, and only once: the pending -> completed flip is a
compare-and-swap, so a second approval finds nothing to claim.
"""

from datetime import datetime

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import Set
from pymongo.errors import PyMongoError

from teleshop.core.audit import admin_actor, log_event
from teleshop.core.exceptions import BadRequestError, ConflictError, NotFoundError
from teleshop.core.logging import get_logger
from teleshop.core.pagination import parse_object_id
from teleshop.models.transaction import PaymentMetadata, Transaction
from teleshop.models.user import User
from teleshop.services import balances as balances_service

log = get_logger(__name__)

TYPES = ("deposit", "withdrawal", "purchase", "refund")
STATUSES = ("pending", "completed", "failed")


async def create_transaction(
    user_id: PydanticObjectId,
    tx_type: str,
    amount: float,
    description: str | None = None,
    metadata: PaymentMetadata | None = None,
) -> Transaction:
    if tx_type not in TYPES:
        raise BadRequestError(f"Invalid transaction type: {tx_type}")
    amount = round(amount or 0, 2)
    if amount <= 0:
        raise BadRequestError("Amount must be positive")
    tx = Transaction(
        user_id=user_id,
        type=tx_type,
        amount=amount,
        description=description,
        status="pending",
        metadata=metadata or PaymentMetadata(),
    )
    await tx.insert()
    log.info("transaction_created", transaction_id=str(tx.id), user_id=str(user_id), type=tx_type, amount=amount)
    return tx


async def list_transactions(
    user_id: PydanticObjectId | None = None,
    tx_type: str | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """Newest first. Unknown type/status filters are rejected rather than ignored."""
    conditions = []
    if user_id is not None:
        conditions.append(Transaction.user_id == user_id)
    if tx_type:
        if tx_type not in TYPES:
            raise BadRequestError(f"Invalid transaction type: {tx_type}")
        conditions.append(Transaction.type == tx_type)
    if status:
        if status not in STATUSES:
            raise BadRequestError(f"Invalid transaction status: {status}")
        conditions.append(Transaction.status == status)
    return await (
        Transaction.find(*conditions)
        .sort(-Transaction.created_at)
        .skip(offset)
        .limit(limit)
        .to_list()
    )


async def count_pending() -> int:
    return await Transaction.find(Transaction.status == "pending").count()


async def _claim_pending(tx_id: PydanticObjectId, new_status: str, admin_username: str) -> Transaction:
    now = datetime.utcnow()
    tx = await Transaction.find_one(
        Transaction.id == tx_id,
        Transaction.status == "pending",
    ).update(
        Set({
            Transaction.status: new_status,
            Transaction.resolved_by: admin_username,
            Transaction.resolved_at: now,
            Transaction.updated_at: now,
        }),
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
    if tx is not None:
        return tx
    existing = await Transaction.get(tx_id)
    if existing is None:
        raise NotFoundError("Transaction not found")
    raise ConflictError(
        f"Transaction is already {existing.status}",
        details={"transaction_id": str(tx_id), "status": existing.status},
    )


async def _release_claim(tx_id: PydanticObjectId) -> None:
    await Transaction.find_one(
        Transaction.id == tx_id,
        Transaction.status == "completed",
    ).update(
        Set({
            Transaction.status: "pending",
            Transaction.resolved_by: None,
            Transaction.resolved_at: None,
            Transaction.updated_at: datetime.utcnow(),
        })
    )


async def approve_transaction(tx_id: str | PydanticObjectId, admin_username: str) -> tuple[Transaction, float]:
    """Complete a pending transaction and apply its balance effect. Returns (transaction, new_balance)."""
    oid = parse_object_id(tx_id, "Transaction")
    tx = await _claim_pending(oid, "completed", admin_username)

    delta = balances_service.signed_amount(tx.type, tx.amount)
    try:
        change = await balances_service.apply_delta(tx.user_id, delta)
    except PyMongoError:
        await _release_claim(oid)
        log.warning("transaction_credit_failed", transaction_id=str(oid), user_id=str(tx.user_id))
        raise
    if change is None:
        await _release_claim(oid)
        if await User.get(tx.user_id) is None:
            raise NotFoundError("User not found")
        raise ConflictError(
            "Insufficient balance",
            details={"transaction_id": str(oid), "amount": tx.amount},
        )
    previous_balance, new_balance = change

    await balances_service.log_change(
        tx.user_id,
        previous_balance,
        new_balance,
        reason=f"{tx.type} approved",
        change_type="transaction_approval",
        admin=admin_username,
        transaction_id=str(oid),
    )
    await log_event(
        admin_actor(admin_username),
        "transaction_approved",
        "transaction",
        str(oid),
        {"user_id": str(tx.user_id), "type": tx.type, "amount": tx.amount, "new_balance": new_balance},
    )
    log.info(
        "transaction_approved",
        transaction_id=str(oid),
        user_id=str(tx.user_id),
        type=tx.type,
        amount=tx.amount,
        new_balance=new_balance,
    )
    return tx, new_balance


async def deny_transaction(tx_id: str | PydanticObjectId, admin_username: str) -> Transaction:
    oid = parse_object_id(tx_id, "Transaction")
    tx = await _claim_pending(oid, "failed", admin_username)
    await log_event(
        admin_actor(admin_username),
        "transaction_denied",
        "transaction",
        str(oid),
        {"user_id": str(tx.user_id), "type": tx.type, "amount": tx.amount},
    )
    log.info("transaction_denied", transaction_id=str(oid), user_id=str(tx.user_id))
    return tx
