import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from teleshop.bot.core import create_bot, create_dispatcher
from teleshop.core.config import get_settings
from teleshop.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from teleshop.core.logging import bind_request_id, configure_logging, get_logger
from teleshop.db.init import init_db
from teleshop.routers import admin, auth, cart, products, telegram, transactions, user
from teleshop.services.admin_auth import get_admin_password_hash

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the application context: database client, optional bot, admin credentials."""
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    if settings.allow_dev_auth:
        log.warning("startup", msg="Development auth bypass is ENABLED")
    app.state.mongo_client = await init_db()
    log.info("startup", msg="DB connected", db=settings.mongodb_db_name)
    app.state.bot = create_bot(settings)
    app.state.dispatcher = create_dispatcher() if app.state.bot else None
    log.info("startup", msg="Bot enabled" if app.state.bot else "TELEGRAM_BOT_TOKEN not set, bot disabled")
    get_admin_password_hash()
    try:
        yield
    finally:
        if app.state.bot is not None:
            await app.state.bot.session.close()
        app.state.mongo_client.close()
        log.info("shutdown")


app = FastAPI(
    title="TeleShop API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(transactions.router, prefix="/api/transactions", tags=["transactions"])
app.include_router(user.router, prefix="/api/user", tags=["user"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(telegram.router, prefix="/api", tags=["telegram"])


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}


@app.get("/api/health")
async def api_health(request: Request):
    """Detailed health: bot and database status."""
    client = getattr(request.app.state, "mongo_client", None)
    database = "unavailable"
    if client is not None:
        try:
            await client.admin.command("ping")
            database = "connected"
        except PyMongoError:
            log.warning("health_db_ping_failed")
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "bot": "connected" if getattr(request.app.state, "bot", None) else "disabled",
        "database": database,
    }
