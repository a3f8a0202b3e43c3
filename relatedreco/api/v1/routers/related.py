# relatedreco/api/v1/routers/related.py
from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
import time
import logging

from relatedreco.api.deps import orchestrator, product_repo
from relatedreco.api.v1.schemas.reco import RelatedRequest
from relatedreco.domain.models.product import ProductContext, RelatedResult
from relatedreco.domain.repositories.product_repo import ProductRepo
from relatedreco.domain.services.orchestrator import RecommendationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["related"])


@router.post("/products/{product_id}/related", response_model=RelatedResult)
async def related_products(
    product_id: str,
    body: Optional[RelatedRequest] = None,
    repo: ProductRepo = Depends(product_repo),
    reco: RecommendationOrchestrator = Depends(orchestrator),
) -> RelatedResult:
    """
    Related products for the product being viewed.
    Pipeline: remote AI ranking (bounded) → local scoring fallback → catalog reconciliation.
    """
    body = body or RelatedRequest()
    logger.info("Request: related_products product_id=%s limit=%s", product_id, body.limit)
    start_time = time.perf_counter()

    catalog = await repo.list_catalog()
    current = next((c for c in catalog if c.product_id == product_id), None)
    if current is None:
        current = await repo.get_by_product_id(product_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Product not found")

    items = await reco.resolve(ProductContext.from_candidate(current), catalog, body.profile, body.limit)
    result = RelatedResult(source_product_id=product_id, items=items, count=len(items))

    logger.info(
        "Response: related_products product_id=%s, count=%s, source=%s, elapsed_time=%.4fs",
        product_id, result.count, (items[0].source if items else None), time.perf_counter() - start_time,
    )
    return result
