from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from teleshop.core.exceptions import BadRequestError
from teleshop.core.pagination import paginate, parse_object_id
from teleshop.deps import AdminSession, bearer_token, require_admin
from teleshop.models.balance_log import BalanceLog
from teleshop.models.transaction import TransactionStatus, TransactionType
from teleshop.routers.auth import user_out
from teleshop.routers.products import product_out
from teleshop.routers.transactions import transaction_out
from teleshop.routers.user import sent_product_out
from teleshop.services import admin as admin_service
from teleshop.services import admin_auth as admin_auth_service
from teleshop.services import balances as balances_service
from teleshop.services import fulfillment as fulfillment_service
from teleshop.services import products as products_service
from teleshop.services import transactions as transactions_service
from teleshop.services import users as users_service

router = APIRouter()


class AdminLogin(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ProductCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, max_length=100)
    image_url: HttpUrl | None = None
    price: float = Field(gt=0, allow_inf_nan=False)
    stock: int = Field(default=0, ge=0)
    featured: bool = False


class ProductUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, max_length=100)
    image_url: HttpUrl | None = None
    price: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    stock: int | None = Field(default=None, ge=0)
    featured: bool | None = None


class BalanceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    balance: float = Field(ge=0, allow_inf_nan=False)
    reason: str = Field(min_length=1, max_length=500)


class SendProduct(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: str
    product_id: str
    username: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=1, max_length=500)
    instructions: str = Field(default="", max_length=5000)


def balance_log_out(b: BalanceLog) -> dict:
    return {
        "id": str(b.id),
        "user_id": str(b.user_id),
        "admin": b.admin,
        "previous_balance": b.previous_balance,
        "new_balance": b.new_balance,
        "change_amount": b.change_amount,
        "reason": b.reason,
        "change_type": b.change_type,
        "transaction_id": b.transaction_id,
        "created_at": b.created_at.isoformat(),
    }


def _product_fields(body: BaseModel, exclude_unset: bool) -> dict:
    data = body.model_dump(exclude_unset=exclude_unset)
    if data.get("image_url") is not None:
        data["image_url"] = str(data["image_url"])
    return data


# --- auth ---

@router.post("/login")
async def admin_login(body: AdminLogin):
    """Admin username/password login; returns an 8h admin bearer token."""
    token = await admin_auth_service.login(body.username, body.password)
    return {"success": True, "token": token, "user": {"username": body.username, "is_admin": True}}


@router.get("/check-eligibility")
async def admin_check_eligibility(token: str | None = Depends(bearer_token)):
    out = await admin_service.check_eligibility(token)
    return {"success": True, **out}


# --- dashboard ---

@router.get("/stats")
async def admin_stats(admin: AdminSession = Depends(require_admin)):
    return await admin_service.get_stats()


@router.get("/users")
async def admin_users(
    admin: AdminSession = Depends(require_admin),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    limit, offset = paginate(limit, offset, max_limit=500)
    users = await users_service.list_users(limit=limit, offset=offset)
    return {"users": [user_out(u) for u in users], "limit": limit, "offset": offset}


@router.put("/users/{user_id}/balance")
async def admin_set_balance(user_id: str, body: BalanceUpdate, admin: AdminSession = Depends(require_admin)):
    """Overwrite a user's balance; recorded in balance logs."""
    previous, new = await balances_service.set_balance(
        parse_object_id(user_id, "User"), body.balance, body.reason, admin.username
    )
    return {"user_id": user_id, "previous_balance": previous, "balance": new}


@router.get("/users/{user_id}/reconcile")
async def admin_reconcile(user_id: str, admin: AdminSession = Depends(require_admin)):
    """Compare stored balance against completed transactions and admin adjustments."""
    return await balances_service.reconcile_user(parse_object_id(user_id, "User"))


@router.get("/balance-logs")
async def admin_balance_logs(
    admin: AdminSession = Depends(require_admin),
    user_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
):
    uid = parse_object_id(user_id, "User") if user_id else None
    logs = await balances_service.list_balance_logs(uid, limit=limit)
    return {"logs": [balance_log_out(b) for b in logs]}


# --- products ---

@router.get("/products")
async def admin_products(admin: AdminSession = Depends(require_admin)):
    items = await products_service.list_products()
    return {"products": [product_out(p) for p in items]}


@router.post("/products")
async def admin_product_create(body: ProductCreate, admin: AdminSession = Depends(require_admin)):
    p = await products_service.create_product(_product_fields(body, exclude_unset=False), admin.username)
    return product_out(p)


@router.put("/products/{product_id}")
async def admin_product_update(product_id: str, body: ProductUpdate, admin: AdminSession = Depends(require_admin)):
    changes = _product_fields(body, exclude_unset=True)
    for required in ("name", "price", "stock", "featured"):
        if required in changes and changes[required] is None:
            raise BadRequestError(f"{required} cannot be null", details={"field": required})
    p = await products_service.update_product(product_id, changes, admin.username)
    return product_out(p)


@router.delete("/products/{product_id}")
async def admin_product_delete(product_id: str, admin: AdminSession = Depends(require_admin)):
    await products_service.delete_product(product_id, admin.username)
    return {"message": "Product deleted"}


# --- transactions ---

@router.get("/transactions")
async def admin_transactions(
    admin: AdminSession = Depends(require_admin),
    status: TransactionStatus | None = Query(None),
    type: TransactionType | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    limit, offset = paginate(limit, offset, max_limit=500)
    items = await transactions_service.list_transactions(tx_type=type, status=status, limit=limit, offset=offset)
    return {"transactions": [transaction_out(t) for t in items], "limit": limit, "offset": offset}


@router.post("/transactions/{transaction_id}/approve")
async def admin_transaction_approve(transaction_id: str, admin: AdminSession = Depends(require_admin)):
    """Complete a pending transaction and apply it to the balance exactly once."""
    t, new_balance = await transactions_service.approve_transaction(transaction_id, admin.username)
    return {**transaction_out(t), "user_balance": new_balance}


@router.post("/transactions/{transaction_id}/deny")
@router.post("/transactions/{transaction_id}/decline")
async def admin_transaction_deny(transaction_id: str, admin: AdminSession = Depends(require_admin)):
    t = await transactions_service.deny_transaction(transaction_id, admin.username)
    return transaction_out(t)


# --- fulfillment ---

@router.post("/send-product")
async def admin_send_product(request: Request, body: SendProduct, admin: AdminSession = Depends(require_admin)):
    """Deliver product credentials to a user and notify them via the bot when available."""
    sent = await fulfillment_service.send_product(
        admin.username,
        body.user_id,
        body.product_id,
        body.username,
        body.password,
        instructions=body.instructions,
        ip_address=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
        bot=getattr(request.app.state, "bot", None),
    )
    return sent_product_out(sent)


@router.get("/sent-products")
async def admin_sent_products(
    admin: AdminSession = Depends(require_admin),
    user_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
):
    uid = parse_object_id(user_id, "User") if user_id else None
    items = await fulfillment_service.list_sent_products(uid, limit=limit)
    return {"sent_products": [sent_product_out(s) for s in items]}
