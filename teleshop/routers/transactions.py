from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from teleshop.core.pagination import paginate
from teleshop.deps import get_current_user
from teleshop.models.transaction import PaymentMetadata, Transaction, TransactionStatus, TransactionType
from teleshop.models.user import User
from teleshop.services import transactions as transactions_service

router = APIRouter()


class TransactionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: TransactionType
    amount: float = Field(gt=0, le=1_000_000, allow_inf_nan=False)
    description: str | None = Field(default=None, max_length=500)
    metadata: PaymentMetadata | None = None


def transaction_out(t: Transaction) -> dict:
    return {
        "id": str(t.id),
        "user_id": str(t.user_id),
        "type": t.type,
        "amount": t.amount,
        "description": t.description,
        "status": t.status,
        "metadata": t.metadata.model_dump(mode="json"),
        "resolved_by": t.resolved_by,
        "resolved_at": t.resolved_at.isoformat() if t.resolved_at else None,
        "created_at": t.created_at.isoformat(),
        "updated_at": t.updated_at.isoformat(),
    }


@router.get("")
async def transactions_list(
    user: User = Depends(get_current_user),
    type: TransactionType | None = Query(None),
    status: TransactionStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Current user's transactions, newest first."""
    limit, offset = paginate(limit, offset)
    items = await transactions_service.list_transactions(
        user_id=user.id, tx_type=type, status=status, limit=limit, offset=offset
    )
    return {"transactions": [transaction_out(t) for t in items], "limit": limit, "offset": offset}


@router.post("")
async def transaction_create(body: TransactionCreate, user: User = Depends(get_current_user)):
    """Submit a deposit/purchase for admin review. Always pending; balance is untouched."""
    t = await transactions_service.create_transaction(
        user.id,
        body.type,
        body.amount,
        description=body.description,
        metadata=body.metadata,
    )
    return transaction_out(t)
