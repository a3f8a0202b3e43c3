from fastapi import FastAPI
from relatedreco.core.config import get_settings
from relatedreco.core.lifespan import lifespan
from relatedreco.api.v1.routers.health import router as health_router
from relatedreco.api.v1.routers.related import router as related_router
from relatedreco.api.v1.routers.ranking import router as ranking_router
from relatedreco.core.logging import configure_logging, level_for

from fastapi.middleware.cors import CORSMiddleware
import os

settings = get_settings()
configure_logging(level=level_for(settings.DEBUG))

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV list, e.g. "https://shop.example.com,https://www.shop.example.com"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,                        # keeps preflight simple
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(related_router)           # related products (orchestrator)
app.include_router(ranking_router)           # AI ranking service
