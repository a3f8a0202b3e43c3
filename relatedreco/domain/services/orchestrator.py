# relatedreco/domain/services/orchestrator.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from relatedreco.domain.errors import RankingCancelledError, RankingError
from relatedreco.domain.models.product import Candidate, ProductContext, RecommendationResult, UserProfile
from relatedreco.domain.services import local_scorer
from relatedreco.domain.services.constants import DEFAULT_LIMIT, SOURCE_AI, SOURCE_LOCAL
from relatedreco.domain.services.reconciler import reconcile
from relatedreco.domain.services.remote_ranking_client import RankingFailure, RankingOutcome, RemoteRankingClient

logger = logging.getLogger(__name__)


class RecommendationOrchestrator:
    """
    Related-products entry point.

    Flow:
      1) One bounded attempt at the remote ranking service.
      2) Non-empty answer -> reconcile its ids against the catalog, tagged "ai".
      3) Any failure, empty answer or cancelled attempt -> local scorer over the
         whole catalog, reconciled and tagged "local".

    A resolution is never mixed: all items share one source tag. When the
    remote ids are all unknown to the catalog the result is empty; the remote
    ranking is trusted and not silently replaced.
    """

    def __init__(self, remote_client: RemoteRankingClient, *, default_limit: int = DEFAULT_LIMIT):
        self.remote_client = remote_client
        self.default_limit = default_limit

    async def resolve(
        self,
        context: ProductContext,
        catalog: Sequence[Candidate],
        profile: UserProfile,
        limit: Optional[int] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[RecommendationResult]:
        t0 = time.perf_counter()
        limit = self.default_limit if limit is None else limit
        if limit < 0:
            logger.warning("orchestrator negative limit=%s treated as 0 product_id=%s", limit, context.product_id)
            limit = 0

        eligible = sum(1 for c in catalog if c.product_id != context.product_id)
        if limit == 0 or eligible == 0:
            logger.info(
                "orchestrator nothing to rank product_id=%s limit=%s eligible=%s",
                context.product_id, limit, eligible,
            )
            return []

        # 1) Remote attempt (fail-open)
        try:
            outcome = await self._remote_attempt(context, profile, limit, cancel_event)
        except Exception as e:
            logger.error("orchestrator remote attempt crashed product_id=%s err=%s", context.product_id, e)
            outcome = RankingFailure(RankingError(str(e)))

        # 2) AI path
        if not isinstance(outcome, RankingFailure) and outcome:
            results = reconcile(
                [ref.product_id for ref in outcome],
                catalog,
                SOURCE_AI,
                limit=limit,
                exclude_id=context.product_id,
            )
            logger.info(
                "orchestrator done product_id=%s source=%s refs=%s items=%s total_time=%.3fs",
                context.product_id, SOURCE_AI, len(outcome), len(results), time.perf_counter() - t0,
            )
            return results

        # 3) Local fallback
        reason = outcome.kind if isinstance(outcome, RankingFailure) else "empty"
        logger.info("orchestrator falling back to local scorer product_id=%s reason=%s", context.product_id, reason)
        ranked = local_scorer.score(context, catalog, profile, limit)
        results = reconcile(
            [c.product_id for c in ranked],
            catalog,
            SOURCE_LOCAL,
            limit=limit,
            exclude_id=context.product_id,
        )
        logger.info(
            "orchestrator done product_id=%s source=%s items=%s total_time=%.3fs",
            context.product_id, SOURCE_LOCAL, len(results), time.perf_counter() - t0,
        )
        return results

    async def _remote_attempt(
        self,
        context: ProductContext,
        profile: UserProfile,
        limit: int,
        cancel_event: Optional[asyncio.Event],
    ) -> RankingOutcome:
        """
        Run the remote call as a task bound to this resolution.
        Cancelling resolve() cancels the task too; setting cancel_event abandons
        only the remote attempt and lets the local path take over.
        """
        task = asyncio.create_task(self.remote_client.fetch_ranking(context, profile, limit))
        if cancel_event is None:
            return await task

        waiter = asyncio.create_task(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        logger.info("orchestrator remote attempt cancelled product_id=%s; result discarded", context.product_id)
        return RankingFailure(RankingCancelledError("remote attempt cancelled by caller"))
