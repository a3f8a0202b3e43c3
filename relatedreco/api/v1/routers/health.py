# relatedreco/api/v1/routers/health.py
import time
import subprocess
from fastapi import APIRouter
from relatedreco.core.config import get_settings
from relatedreco.db import mongo

router = APIRouter(tags=["health"])
START_TIME = time.time()


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):
        return "unknown"
    return out.decode().strip()


async def _catalog_check() -> dict:
    db = mongo.get_db()
    await db.command("ping")
    return {"status": "ok", "products": await db[mongo.PRODUCTS_COLLECTION].estimated_document_count()}


@router.get("/health")
async def health():
    """
    Tolerant health check. Only the catalog decides the status: without an
    OpenAI key the ranking route serves same-category results, and a remote
    ranking outage is absorbed by the local scorer.
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": _git_sha() if settings.GIT_SHA == "unknown" else settings.GIT_SHA,
        "uptime_seconds": int(time.time() - START_TIME),
        "remote_ranking_url": settings.REMOTE_RANKING_URL,
        "remote_ranking_timeout_s": settings.remote_ranking_timeout_s,
        "openai_api_key_set": bool(settings.OPENAI_API_KEY),
    }

    try:
        catalog = await _catalog_check()
    except Exception as e:
        catalog = {"status": f"error: {e}"}
    checks["mongodb"] = catalog["status"]
    checks["catalog_products"] = catalog.get("products")

    status = "ok" if checks["mongodb"] == "ok" else "error"
    return {"status": status, "checks": checks, "timestamp": int(time.time())}
