# relatedreco/domain/services/reconciler.py
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from relatedreco.domain.models.product import Candidate, RecommendationResult
from relatedreco.domain.services.constants import DEFAULT_LIMIT
from relatedreco.domain.services.image_resolver import resolve_image

logger = logging.getLogger(__name__)


def _index_catalog(catalog: Sequence[Candidate]) -> Dict[str, Candidate]:
    # First occurrence wins when the catalog repeats an id
    by_id: Dict[str, Candidate] = {}
    for c in catalog:
        by_id.setdefault(c.product_id, c)
    return by_id


def reconcile(
    identifiers: Iterable[str],
    catalog: Sequence[Candidate],
    source_tag: str,
    limit: int = DEFAULT_LIMIT,
    exclude_id: Optional[str] = None,
) -> List[RecommendationResult]:
    """
    Turn an ordered list of product ids into display-ready results.
    Ids unknown to the catalog are skipped, never fabricated; duplicates keep
    their first position; the output is capped at `limit`.
    """
    if limit <= 0:
        return []

    by_id = _index_catalog(catalog)
    seen = set()
    results: List[RecommendationResult] = []
    missing: List[str] = []

    for pid in identifiers:
        if pid in seen or pid == exclude_id:
            continue
        seen.add(pid)
        candidate = by_id.get(pid)
        if candidate is None:
            missing.append(pid)
            continue
        results.append(
            RecommendationResult.from_candidate(candidate, image=resolve_image(candidate), source=source_tag)
        )
        if len(results) >= limit:
            break

    if missing:
        logger.info("reconcile source=%s dropped unknown ids=%s", source_tag, missing[:20])
    logger.debug("reconcile source=%s items=%s", source_tag, [r.product_id for r in results])
    return results
