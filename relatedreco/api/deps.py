# relatedreco/api/deps.py
from fastapi import Depends, Request
from relatedreco.core.config import Settings, get_settings
from relatedreco.db.mongo import get_db
from relatedreco.domain.repositories.product_repo import ProductRepo
from relatedreco.domain.services.orchestrator import RecommendationOrchestrator
from relatedreco.domain.services.remote_ranking_client import RemoteRankingClient

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    # Returns the MongoDB database instance (async)
    return db

# Catalog provider bound to the request's database
def product_repo(db = Depends(mongo_db)) -> ProductRepo:
    return ProductRepo(db)

# Orchestrator wired to the configured remote ranking service
def orchestrator(request: Request, settings: Settings = Depends(get_settings)) -> RecommendationOrchestrator:
    client = RemoteRankingClient(
        settings.REMOTE_RANKING_URL,
        timeout_s=settings.remote_ranking_timeout_s,
        http_client=getattr(request.app.state, "http_client", None),
    )
    return RecommendationOrchestrator(client, default_limit=settings.default_limit)
