"""Tests for mapping ranked ids back to catalog entries."""

from __future__ import annotations

from relatedreco.domain.models.product import RecommendationResult
from relatedreco.domain.services.reconciler import reconcile


def _ids(results):
    return [r.product_id for r in results]


def test_keeps_order_and_attaches_source_and_image(furniture_catalog):
    results = reconcile(["P5", "P2", "P6"], furniture_catalog, "ai")

    assert _ids(results) == ["P5", "P2", "P6"]
    assert all(isinstance(r, RecommendationResult) for r in results)
    assert {r.source for r in results} == {"ai"}
    assert [r.image for r in results] == [
        "https://img.example/p5.jpg",
        "https://img.example/p2.jpg",
        "https://img.example/p6-a.jpg",
    ]


def test_full_catalog_fields_are_carried_over(furniture_catalog):
    (item,) = reconcile(["P4"], furniture_catalog, "local")
    assert item.name == "Product P4"
    assert item.category == "Lighting"
    assert item.price == 90
    assert item.description == "Brass floor lamp"
    assert item.image == "https://placehold.co/400x500?text=Product%20P4"


def test_unknown_ids_are_skipped(furniture_catalog):
    assert _ids(reconcile(["NOPE", "P3", "GHOST"], furniture_catalog, "ai")) == ["P3"]


def test_all_unknown_gives_empty(furniture_catalog):
    assert reconcile(["X1", "X2"], furniture_catalog, "ai") == []


def test_duplicates_keep_first_position(furniture_catalog):
    assert _ids(reconcile(["P3", "P2", "P3", "P2", "P4"], furniture_catalog, "ai")) == ["P3", "P2", "P4"]


def test_limit_caps_output(furniture_catalog):
    assert _ids(reconcile(["P2", "P3", "P4", "P5", "P6"], furniture_catalog, "local", limit=2)) == ["P2", "P3"]
    assert reconcile(["P2"], furniture_catalog, "local", limit=0) == []


def test_default_limit_is_four(furniture_catalog):
    assert len(reconcile(["P2", "P3", "P4", "P5", "P6"], furniture_catalog, "ai")) == 4


def test_excluded_id_is_dropped_without_using_a_slot(furniture_catalog):
    results = reconcile(["P1", "P2", "P3"], furniture_catalog, "ai", limit=2, exclude_id="P1")
    assert _ids(results) == ["P2", "P3"]


def test_first_catalog_occurrence_wins(make_candidate):
    catalog = [
        make_candidate("D", name="First copy"),
        make_candidate("D", name="Second copy"),
    ]
    (item,) = reconcile(["D"], catalog, "ai")
    assert item.name == "First copy"


def test_empty_inputs(furniture_catalog):
    assert reconcile([], furniture_catalog, "ai") == []
    assert reconcile(["P2"], [], "ai") == []
