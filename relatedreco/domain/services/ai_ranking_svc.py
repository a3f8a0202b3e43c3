# relatedreco/domain/services/ai_ranking_svc.py

from __future__ import annotations
from typing import List, Dict, Any, Optional
import json
import re
import logging
from time import monotonic as _now

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, ValidationError

from relatedreco.core.config import Settings
from relatedreco.domain.errors import RankingRequestError
from relatedreco.domain.models.product import Candidate, UserProfile
from relatedreco.domain.models.ranking import RankedProduct, RankingRequest, RankingResponse
from relatedreco.domain.services.constants import POOL_DESCRIPTION_CHARS, SOURCE_AI, SOURCE_CATEGORY
from relatedreco.domain.services.prompts import system_prompt, user_task

logger = logging.getLogger(__name__)

# Completion token cap; the answer is a short id list
DEFAULT_MAX_TOKENS = 256

# =============================================================================
#                               VALIDATION SCHEMA
# =============================================================================

class RankedIds(BaseModel):
    """
    Expected LLM output, matching prompts.py:
      {"product_ids": ["<id>", ...]}   # best match first
    """
    product_ids: List[str]

    # Catalog ids may come back as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

# Regex to strip code fences (``` or ```json) from LLM output
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)
# Last resort: first JSON array anywhere in the text
_JSON_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)

def _strip_fences(s: str) -> str:
    """Remove ``` or ```json fences the LLM might add."""
    return _CODE_FENCE_RE.sub("", s).strip()

def _parse_ranked_ids(text: str) -> List[str]:
    """
    Accepts {"product_ids": [...]}, a bare JSON array, or prose wrapping an array.
    Raises ValueError on any issue.
    """
    raw = _strip_fences(text or "")
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError:
        match = _JSON_ARRAY_RE.search(raw)
        if not match:
            raise ValueError("Could not find recommendation ids in LLM response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid LLM JSON: {e}") from e

    if isinstance(parsed, list):
        parsed = {"product_ids": parsed}
    try:
        model = RankedIds.model_validate(parsed)
    except ValidationError as e:
        raise ValueError(f"Invalid LLM JSON: {e}") from e
    return model.product_ids

# =============================================================================
#                               LLM CALL
# =============================================================================

async def _call_llm(messages: List[dict], *, model: str, api_key: str, timeout_s: int) -> str:
    """
    Call the LLM with the given messages, model, and timeout.
    Returns the raw content string from the LLM response.
    """
    client = AsyncOpenAI(api_key=api_key)
    t0 = _now()
    resp = await client.chat.completions.create(
        model=model,
        messages=messages,
        max_tokens=DEFAULT_MAX_TOKENS,
        temperature=0.0,
        timeout=timeout_s,
        response_format={"type": "json_object"},
    )
    dt = _now() - t0
    u = getattr(resp, "usage", None)
    logger.info(
        "LLM call model=%s duration=%.3fs tokens(prompt=%s, completion=%s)",
        getattr(resp, "model", model), dt,
        getattr(u, "prompt_tokens", None), getattr(u, "completion_tokens", None),
    )
    return resp.choices[0].message.content or "{}"

# =============================================================================
#                               COMPACT HELPERS
# =============================================================================

def _product_info(product: Candidate) -> Dict[str, Any]:
    return {
        "id": product.product_id,
        "name": product.name,
        "category": product.category,
        "description": product.description,
        "price": product.price,
        "colors": [v.color for v in product.variants if v.color],
    }

def _pool_entry(product: Candidate) -> Dict[str, Any]:
    data = _product_info(product)
    data["description"] = (product.description or "")[:POOL_DESCRIPTION_CHARS]
    data["isFeatured"] = product.is_featured
    return data

def _user_context(profile: UserProfile) -> Dict[str, Any]:
    return {
        "searchHistory": list(profile.search_history),
        "viewedProducts": [{"name": p.name, "category": p.category} for p in profile.viewed_products],
        "categoryPreferences": dict(profile.category_preferences),
        "colorPreferences": dict(profile.color_preferences),
    }

def build_messages(product: Candidate, profile: UserProfile, pool: List[Candidate], limit: int) -> List[dict]:
    return [
        {"role": "system", "content": system_prompt()},
        {"role": "user", "content": user_task(
            _product_info(product), _user_context(profile), [_pool_entry(p) for p in pool], limit,
        )},
    ]

# =============================================================================
#                               SELECTION
# =============================================================================

def _same_category(product: Candidate, pool: List[Candidate]) -> List[Candidate]:
    return [p for p in pool if p.category == product.category]

def _select(ids: List[str], product: Candidate, pool: List[Candidate], limit: int) -> List[Candidate]:
    """Keep LLM ids that exist in the pool (in LLM order), then top up with same-category products."""
    by_id = {p.product_id: p for p in pool}
    chosen: List[Candidate] = []
    seen = set()
    for pid in ids:
        if pid in by_id and pid not in seen:
            seen.add(pid)
            chosen.append(by_id[pid])

    if len(chosen) < limit:
        for p in _same_category(product, pool):
            if len(chosen) >= limit:
                break
            if p.product_id not in seen:
                seen.add(p.product_id)
                chosen.append(p)
    return chosen[:limit]

def _response(items: List[Candidate], source: Optional[str]) -> RankingResponse:
    return RankingResponse(
        success=True,
        recommendations=[RankedProduct.model_validate(p.model_dump()) for p in items],
        source=source,
    )

def _category_fallback(product: Candidate, pool: List[Candidate], limit: int) -> RankingResponse:
    return _response(_same_category(product, pool)[:limit], SOURCE_CATEGORY)

# =============================================================================
#                               PUBLIC API
# =============================================================================

async def rank_related_products(repo, request: RankingRequest, settings: Settings) -> RankingResponse:
    """
    Server side of the remote ranking contract:
    - Load the viewed product and a pool of same-category or featured products
    - Ask the LLM to pick and order ids from the pool
    - Fail-open: no API key or any LLM error -> same-category products (source "category")
    """
    t0 = _now()
    current = request.current_product
    if current is None or not current.product_id:
        raise RankingRequestError(400, "Current product information is required")

    product = await repo.get_by_product_id(current.product_id)
    if product is None:
        raise RankingRequestError(404, "Product not found")

    limit = request.limit
    pool = [p for p in await repo.find_pool(product, limit=settings.candidate_pool_size) if p.product_id != product.product_id]
    logger.info("ai_ranking product_id=%s pool=%s limit=%s", product.product_id, len(pool), limit)
    if not pool:
        return RankingResponse(success=True, recommendations=[])

    if not settings.OPENAI_API_KEY:
        logger.info("ai_ranking OPENAI_API_KEY not configured, falling back to category-based recommendations")
        return _category_fallback(product, pool, limit)

    messages = build_messages(product, request.user_preferences, pool, limit)
    logger.debug("ai_ranking LLM prompt preview: %s", messages[1]["content"][:2000])
    try:
        content = await _call_llm(
            messages,
            model=settings.OPENAI_RANKING_MODEL,
            api_key=settings.OPENAI_API_KEY,
            timeout_s=settings.openai_timeout_s,
        )
        ids = _parse_ranked_ids(content)
    except Exception as e:
        logger.error("ai_ranking LLM failed for product_id=%s: %s; falling back to category", product.product_id, e)
        return _category_fallback(product, pool, limit)

    chosen = _select(ids, product, pool, limit)
    logger.info(
        "ai_ranking done product_id=%s llm_ids=%s items=%s total_time=%.3fs",
        product.product_id, len(ids), len(chosen), _now() - t0,
    )
    return _response(chosen, SOURCE_AI)
