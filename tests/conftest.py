"""Shared fixtures: catalog builders, profiles and an in-memory catalog provider."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from relatedreco.core.config import Settings
from relatedreco.domain.models.product import Candidate, ProductContext, UserProfile


def _candidate(product_id: str, **fields: Any) -> Candidate:
    fields.setdefault("name", f"Product {product_id}")
    return Candidate(product_id=product_id, **fields)


class InMemoryProductRepo:
    """Same surface as ProductRepo, backed by a list (catalog order preserved)."""

    def __init__(self, products: list[Candidate]):
        self.products = list(products)
        self.pool_limits: list[int] = []

    async def get_by_product_id(self, product_id: str) -> Candidate | None:
        return next((p for p in self.products if p.product_id == product_id), None)

    async def list_catalog(self, limit: int | None = None) -> list[Candidate]:
        return self.products[:limit] if limit else list(self.products)

    async def find_pool(self, product: Candidate, limit: int) -> list[Candidate]:
        self.pool_limits.append(limit)
        pool = [
            p
            for p in self.products
            if p.product_id != product.product_id
            and ((product.category and p.category == product.category) or p.is_featured)
        ]
        return pool[:limit]


class StubRemoteClient:
    """Stands in for RemoteRankingClient; records calls and cancellation."""

    def __init__(self, outcome: Any = None, *, delay: float = 0.0, exc: Exception | None = None):
        self.outcome = outcome
        self.delay = delay
        self.exc = exc
        self.calls: list[dict[str, Any]] = []
        self.cancelled = False

    async def fetch_ranking(self, context: ProductContext, profile: UserProfile, limit: int):
        self.calls.append({"product_id": context.product_id, "limit": limit})
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.exc is not None:
            raise self.exc
        return self.outcome


@pytest.fixture
def make_candidate():
    return _candidate


@pytest.fixture
def empty_profile() -> UserProfile:
    return UserProfile()


@pytest.fixture
def furniture_catalog() -> list[Candidate]:
    """P1 is the viewed product; the rest cover each scoring signal."""
    return [
        _candidate("P1", category="Furniture", price=500, variants=[{"color": "Oak"}]),
        _candidate("P2", category="Furniture", price=480, image="https://img.example/p2.jpg"),
        _candidate("P3", category="Electronics", price=500),
        _candidate("P4", category="Lighting", price=90, description="Brass floor lamp"),
        _candidate("P5", category="Decor", price=2000, variants=[{"color": "Navy", "image": "https://img.example/p5.jpg"}]),
        _candidate("P6", category="Decor", price=45, is_featured=True, variants=[{"additional_images": ["https://img.example/p6-a.jpg"]}]),
    ]


@pytest.fixture
def furniture_context(furniture_catalog) -> ProductContext:
    return ProductContext.from_candidate(furniture_catalog[0])


@pytest.fixture
def repo_factory():
    return InMemoryProductRepo


@pytest.fixture
def stub_remote_factory():
    return StubRemoteClient


@pytest.fixture
def settings_factory():
    def _make(**overrides: Any) -> Settings:
        return Settings(_env_file=None, **overrides)

    return _make
