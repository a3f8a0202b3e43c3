# relatedreco/domain/services/remote_ranking_client.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError

from relatedreco.domain.errors import (
    EmptyRankingError,
    RankingError,
    RankingProtocolError,
    RankingTimeoutError,
    RankingTransportError,
)
from relatedreco.domain.models.product import ProductContext, RemoteCandidateRef, UserProfile
from relatedreco.domain.services.constants import VIEWED_PRODUCTS_CAP

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 3.0


@dataclass(frozen=True)
class RankingFailure:
    """Silent failure value: the caller decides what to do instead."""
    error: RankingError

    @property
    def kind(self) -> str:
        return self.error.kind


RankingOutcome = Union[List[RemoteCandidateRef], RankingFailure]


# =============================================================================
#                               WIRE FORMAT
# =============================================================================

def build_payload(context: ProductContext, profile: UserProfile, limit: int) -> Dict[str, Any]:
    """Request body: reduced product, reduced profile (≤10 viewed products) and the limit."""
    prefs = profile.model_dump(by_alias=True)
    prefs["viewedProducts"] = prefs["viewedProducts"][:VIEWED_PRODUCTS_CAP]
    return {
        "currentProduct": context.model_dump(by_alias=True),
        "userPreferences": prefs,
        "limit": limit,
    }


def parse_ranking_response(data: Any) -> List[RemoteCandidateRef]:
    """
    Validate the service answer and keep the usable entries, in order.
    Entries without an identifier are dropped one by one; a response that
    breaks the contract as a whole raises RankingProtocolError, and a valid
    one without usable entries raises EmptyRankingError.
    """
    if not isinstance(data, dict):
        raise RankingProtocolError(f"expected a JSON object, got {type(data).__name__}")
    if data.get("success") is not True:
        raise RankingProtocolError(f"non-success response error={data.get('error')!r}")

    recs = data.get("recommendations")
    if recs is None:
        raise EmptyRankingError("success response without recommendations")
    if not isinstance(recs, list):
        raise RankingProtocolError(f"recommendations must be a list, got {type(recs).__name__}")

    refs: List[RemoteCandidateRef] = []
    dropped = 0
    for entry in recs:
        if not isinstance(entry, dict):
            dropped += 1
            continue
        try:
            refs.append(RemoteCandidateRef.model_validate(entry))
        except ValidationError:
            dropped += 1

    if dropped:
        logger.info("remote_ranking dropped malformed entries n=%s kept=%s", dropped, len(refs))
    if not refs:
        raise EmptyRankingError(f"no usable recommendations (received={len(recs)})")
    return refs


# =============================================================================
#                               CLIENT
# =============================================================================

class RemoteRankingClient:
    """
    One bounded POST to the remote ranking service per call.
    Never raises for remote problems: fetch_ranking returns RankingFailure instead.
    """

    def __init__(self, url: str, *, timeout_s: float = DEFAULT_TIMEOUT_S, http_client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.timeout_s = timeout_s
        self._http = http_client

    async def fetch_ranking(self, context: ProductContext, profile: UserProfile, limit: int) -> RankingOutcome:
        t0 = time.perf_counter()
        payload = build_payload(context, profile, limit)
        try:
            # Overall deadline on top of httpx's per-phase timeouts
            refs = await asyncio.wait_for(self._request(payload), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            err: RankingError = RankingTimeoutError(f"no answer within {self.timeout_s}s")
        except RankingError as e:
            err = e
        else:
            logger.info(
                "remote_ranking ok product_id=%s refs=%s time=%.3fs",
                context.product_id, len(refs), time.perf_counter() - t0,
            )
            return refs

        logger.warning(
            "remote_ranking failed product_id=%s kind=%s err=%s time=%.3fs",
            context.product_id, err.kind, err, time.perf_counter() - t0,
        )
        return RankingFailure(err)

    async def _request(self, payload: Dict[str, Any]) -> List[RemoteCandidateRef]:
        if self._http is not None:
            return await self._post(self._http, payload)
        async with httpx.AsyncClient() as client:
            return await self._post(client, payload)

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> List[RemoteCandidateRef]:
        try:
            resp = await client.post(self.url, json=payload, timeout=self.timeout_s)
        except httpx.TimeoutException as e:
            raise RankingTimeoutError(f"{type(e).__name__} calling {self.url}") from e
        except httpx.RequestError as e:
            raise RankingTransportError(f"{type(e).__name__} calling {self.url}: {e}") from e

        if not resp.is_success:
            raise RankingProtocolError(f"HTTP {resp.status_code} from {self.url}")

        try:
            data = resp.json()
        except ValueError as e:
            raise RankingProtocolError("response body is not valid JSON") from e

        if isinstance(data, dict) and data.get("source"):
            # Echoed source is informational only; the orchestrator tags results itself
            logger.debug("remote_ranking echoed source=%s", data.get("source"))
        return parse_ranking_response(data)
