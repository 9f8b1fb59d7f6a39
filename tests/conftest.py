import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Use test DB and fixed secrets
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ["MONGODB_DB_NAME"] = "teleshop_test"
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ["TELEGRAM_BOT_TOKEN"] = "123456:TEST-bot-token"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-admin-pass"
os.environ["ADMIN_PASSWORD_HASH"] = ""
os.environ["ALLOW_DEV_AUTH"] = "false"
os.environ["ENV"] = "test"



@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from teleshop.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Beanie bound to a clean test database; skips when MongoDB is not reachable."""
    from pymongo.errors import PyMongoError

    from teleshop.core.config import get_settings
    from teleshop.db.init import DOCUMENT_MODELS, create_client, init_db

    mongo = create_client(get_settings().mongodb_uri, serverSelectionTimeoutMS=1500)
    try:
        await mongo.admin.command("ping")
    except PyMongoError:
        mongo.close()
        pytest.skip("MongoDB not reachable")
    await init_db(mongo)
    for model in DOCUMENT_MODELS:
        await model.delete_all()
    yield mongo
    mongo.close()


@pytest_asyncio.fixture
async def user(db):
    from teleshop.services import users as users_service
    return await users_service.upsert_user_from_telegram(
        {"id": 424242, "username": "buyer", "first_name": "Buyer"}
    )


@pytest_asyncio.fixture
async def product(db):
    from teleshop.models.product import Product
    p = Product(name="Netflix Premium", description="1 month", category="streaming", price=9.99, stock=10)
    await p.insert()
    return p


@pytest.fixture
def user_token(user) -> str:
    from teleshop.core.security import create_user_token
    from teleshop.services.users import session_payload_for_user
    return create_user_token(session_payload_for_user(user))


@pytest.fixture
def admin_token() -> str:
    from teleshop.core.security import create_admin_token
    return create_admin_token("admin")


@pytest.fixture
def user_headers(user_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def admin_headers(admin_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {admin_token}"}
