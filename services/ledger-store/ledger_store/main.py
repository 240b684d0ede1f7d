"""
Ledger Store — FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from ledger_store.core.config import get_settings
from ledger_store.core.notifier import Notifier
from ledger_store.core.redis_client import close_redis, get_redis
from ledger_store.db.ledger_store import LedgerStore
from ledger_store.db.snapshot import storage_from_settings
from ledger_store.api import gift_cards, health, menu, notifications, pickup, wallet

settings = get_settings()

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    use_redis = settings.SNAPSHOT_BACKEND == "redis"
    app.state.ledger = await LedgerStore.load(
        storage_from_settings(settings),
        now=datetime.now(timezone.utc),
        settings=settings,
    )
    app.state.notifier = Notifier(
        redis=get_redis() if use_redis else None,
        channel=settings.TOAST_CHANNEL,
        history=settings.TOAST_HISTORY_SIZE,
    )
    logger.info("%s %s ready", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    await app.state.ledger.close()
    if use_redis:
        await close_redis()


app = FastAPI(
    title="Coffee Ledger Store",
    description="Wallet balance, gift cards and prepaid pickup orders for a single coffee-shop customer.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(menu.router)
app.include_router(wallet.router)
app.include_router(gift_cards.router)
app.include_router(pickup.router)
app.include_router(notifications.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
