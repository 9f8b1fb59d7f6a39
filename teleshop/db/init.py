import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from teleshop.core.config import get_settings
from teleshop.models.audit_log import AuditLog
from teleshop.models.balance_log import BalanceLog
from teleshop.models.cart import CartItem
from teleshop.models.product import Product
from teleshop.models.sent_product import SentProduct
from teleshop.models.transaction import Transaction
from teleshop.models.user import User

DOCUMENT_MODELS = [
    User,
    Product,
    CartItem,
    Transaction,
    SentProduct,
    BalanceLog,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def create_client(uri: str, **kwargs) -> AsyncIOMotorClient:
    if _use_tls(uri):
        kwargs.setdefault("tlsCAFile", certifi.where())
        kwargs.setdefault("tlsDisableOCSPEndpointCheck", True)
    return AsyncIOMotorClient(uri, **kwargs)


async def init_db(client: AsyncIOMotorClient | None = None) -> AsyncIOMotorClient:
    """Bind Beanie to the configured database and return the client in use."""
    settings = get_settings()
    if client is None:
        client = create_client(settings.mongodb_uri)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    return client
