# storesync/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storesync.core.config import get_settings
from storesync.core.logging_config import configure_logging
from storesync.database import create_tables
from storesync.routes import health, tenants, webhooks
from storesync.routes.platforms.shopify import router as shopify_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    if settings.AUTO_CREATE_TABLES:
        logger.info("Creating database tables...")
        await create_tables()

    if settings.ALLOW_UNVERIFIED_WEBHOOKS:
        logger.warning(
            "ALLOW_UNVERIFIED_WEBHOOKS is enabled: webhooks for tenants without a "
            "webhook secret are accepted without signature verification"
        )

    yield


app = FastAPI(
    title="storesync",
    description="Shopify ingestion into a multi-tenant analytics store",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(webhooks.router)
app.include_router(tenants.router)
app.include_router(shopify_router)
