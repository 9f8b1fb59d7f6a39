from teleshop.models.user import User
from teleshop.models.product import Product
from teleshop.models.cart import CartItem
from teleshop.models.transaction import Transaction
from teleshop.models.sent_product import SentProduct
from teleshop.models.balance_log import BalanceLog
from teleshop.models.audit_log import AuditLog

__all__ = [
    "User",
    "Product",
    "CartItem",
    "Transaction",
    "SentProduct",
    "BalanceLog",
    "AuditLog",
]
