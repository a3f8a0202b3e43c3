# relatedreco/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
import httpx
from relatedreco.db import mongo
from relatedreco.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo holds the catalog (skipped if no URI configured)
    if settings.MONGO_URI:
        await mongo.connect()
    else:
        logger.warning("No MONGO_URI provided, skipping Mongo connection")

    # One pooled HTTP client for remote ranking calls
    app.state.http_client = httpx.AsyncClient()

    # Application runs
    yield

    # --- Shutdown ---
    await app.state.http_client.aclose()
    logger.info("Remote ranking HTTP client closed")

    if settings.MONGO_URI:
        await mongo.disconnect()
        logger.info("Mongo disconnected")
