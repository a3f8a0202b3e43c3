# relatedreco/domain/services/local_scorer.py
"""
Deterministic fallback ranking.

Each candidate gets the sum of the weights of the signals it triggers; the
catalog order breaks ties. The policy lives in SIGNALS so weights and
conditions can be tuned or tested without touching the ranking loop.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Mapping, Sequence

from relatedreco.domain.models.product import Candidate, ProductContext, UserProfile
from relatedreco.domain.services.constants import (
    DEFAULT_LIMIT,
    PRICE_PROXIMITY_RATIO,
    TOP_CATEGORIES_N,
    TOP_COLORS_N,
    WEIGHT_CATEGORY_MATCH,
    WEIGHT_COLOR_OVERLAP,
    WEIGHT_PREFERRED_CATEGORY,
    WEIGHT_PRICE_PROXIMITY,
    WEIGHT_SEARCH_HISTORY,
)

logger = logging.getLogger(__name__)


def top_values(mapping: Mapping[str, float], n: int) -> List[str]:
    """Keys of the n highest weights; equal weights keep the mapping's insertion order."""
    if n <= 0:
        return []
    ranked = sorted(mapping.items(), key=lambda kv: kv[1], reverse=True)  # sorted() is stable
    return [key for key, _ in ranked[:n]]


@dataclass(frozen=True)
class ScoringState:
    """Per-request values shared by every signal (computed once, not per candidate)."""
    context: ProductContext
    top_categories: List[str]
    top_colors: List[str]
    search_terms: List[str]

    @classmethod
    def build(cls, context: ProductContext, profile: UserProfile) -> "ScoringState":
        return cls(
            context=context,
            top_categories=top_values(profile.category_preferences, TOP_CATEGORIES_N),
            top_colors=top_values(profile.color_preferences, TOP_COLORS_N),
            search_terms=[t.lower() for t in profile.search_history if t and t.strip()],
        )


@dataclass(frozen=True)
class Signal:
    name: str
    weight: int
    applies: Callable[[Candidate, ScoringState], bool]


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    score: int
    position: int  # index in the input catalog, the tie-break key


# ---------- Signal conditions ------------------------------------------------

def _same_category(c: Candidate, s: ScoringState) -> bool:
    return c.category is not None and c.category == s.context.category


def _preferred_category(c: Candidate, s: ScoringState) -> bool:
    return c.category is not None and c.category in s.top_categories


def _price_close(c: Candidate, s: ScoringState) -> bool:
    ref = s.context.price
    if ref is None or c.price is None or ref <= 0:
        return False
    return abs(c.price - ref) / ref <= PRICE_PROXIMITY_RATIO


def _preferred_color(c: Candidate, s: ScoringState) -> bool:
    return any(v.color and v.color in s.top_colors for v in c.variants)


def _matches_search_history(c: Candidate, s: ScoringState) -> bool:
    if not s.search_terms:
        return False
    text = f"{c.name} {c.description or ''} {c.category or ''}".lower()
    return any(term in text for term in s.search_terms)


SIGNALS: Sequence[Signal] = (
    Signal("category_match", WEIGHT_CATEGORY_MATCH, _same_category),
    Signal("preferred_category", WEIGHT_PREFERRED_CATEGORY, _preferred_category),
    Signal("price_proximity", WEIGHT_PRICE_PROXIMITY, _price_close),
    Signal("color_overlap", WEIGHT_COLOR_OVERLAP, _preferred_color),
    Signal("search_history", WEIGHT_SEARCH_HISTORY, _matches_search_history),
)


# ---------- Public API -------------------------------------------------------

def triggered_signals(candidate: Candidate, state: ScoringState) -> List[str]:
    return [sig.name for sig in SIGNALS if sig.applies(candidate, state)]


def score_candidate(candidate: Candidate, state: ScoringState) -> int:
    return sum(sig.weight for sig in SIGNALS if sig.applies(candidate, state))


def rank(context: ProductContext, catalog: Sequence[Candidate], profile: UserProfile) -> List[ScoredCandidate]:
    """Score every catalog entry except the viewed product, best first."""
    state = ScoringState.build(context, profile)
    scored = [
        ScoredCandidate(candidate=c, score=score_candidate(c, state), position=pos)
        for pos, c in enumerate(catalog)
        if c.product_id != context.product_id
    ]
    scored.sort(key=lambda sc: (-sc.score, sc.position))
    return scored


def score(
    context: ProductContext,
    catalog: Sequence[Candidate],
    profile: UserProfile,
    limit: int = DEFAULT_LIMIT,
) -> List[Candidate]:
    """Top `limit` candidates by local score. Pure and deterministic."""
    t0 = time.perf_counter()
    if limit <= 0 or not catalog:
        return []

    scored = rank(context, catalog, profile)
    top = scored[:limit]
    logger.debug(
        "local_scorer product_id=%s top=%s",
        context.product_id, [(sc.candidate.product_id, sc.score) for sc in top],
    )
    logger.info(
        "local_scorer product_id=%s scored=%s kept=%s time=%.3fs",
        context.product_id, len(scored), len(top), time.perf_counter() - t0,
    )
    return [sc.candidate for sc in top]
