# relatedreco/api/v1/routers/ranking.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from relatedreco.api.deps import product_repo
from relatedreco.core.config import Settings, get_settings
from relatedreco.domain.errors import RankingRequestError
from relatedreco.domain.models.ranking import RankingRequest
from relatedreco.domain.repositories.product_repo import ProductRepo
from relatedreco.domain.services.ai_ranking_svc import rank_related_products

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ranking"])


@router.post("/recommendations/ai")
async def ai_recommendations(
    request: RankingRequest,
    repo: ProductRepo = Depends(product_repo),
    settings: Settings = Depends(get_settings),
):
    """
    AI-ranked related products (the remote ranking service the orchestrator calls).
    Errors keep the {success: false, error} body shape.
    """
    try:
        res = await rank_related_products(repo, request, settings)
    except RankingRequestError as e:
        logger.info("ai_recommendations rejected status=%s error=%s", e.status_code, e.message)
        return JSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})
    except Exception as e:
        logger.exception("Error in ai_recommendations: %s", e)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Server error generating recommendations"},
        )
    return res.model_dump(exclude_none=True)
