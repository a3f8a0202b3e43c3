"""Tests for the remote ranking client: wire format, parsing and failure mapping."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from relatedreco.domain.errors import EmptyRankingError, RankingProtocolError
from relatedreco.domain.models.product import ProductContext, UserProfile
from relatedreco.domain.services.remote_ranking_client import (
    RankingFailure,
    RemoteRankingClient,
    build_payload,
    parse_ranking_response,
)

URL = "http://ranking.test/recommendations/ai"


def _client(handler, **kwargs) -> RemoteRankingClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteRankingClient(URL, http_client=http, **kwargs)


@pytest.fixture
def context() -> ProductContext:
    return ProductContext(product_id="P1", name="Oak table", category="Furniture", price=500, colors=["Oak", "Oak", "Walnut"])


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        search_history=["table"],
        viewed_products=[{"id": f"V{i}", "name": f"Viewed {i}", "category": "Furniture"} for i in range(15)],
        category_preferences={"Furniture": 3},
        color_preferences={"Oak": 1},
    )


class TestBuildPayload:
    def test_shape(self, context, profile):
        payload = build_payload(context, profile, 4)

        assert payload["limit"] == 4
        assert payload["currentProduct"] == {
            "id": "P1",
            "name": "Oak table",
            "category": "Furniture",
            "description": None,
            "price": 500.0,
            "colors": ["Oak", "Walnut"],
        }
        prefs = payload["userPreferences"]
        assert set(prefs) == {"searchHistory", "viewedProducts", "categoryPreferences", "colorPreferences"}
        assert len(prefs["viewedProducts"]) == 10
        assert prefs["viewedProducts"][0] == {"id": "V0", "name": "Viewed 0", "category": "Furniture"}

    def test_is_json_serializable(self, context, profile):
        json.dumps(build_payload(context, profile, 4))


class TestParseRankingResponse:
    def test_accepts_id_variants_and_keeps_order(self):
        refs = parse_ranking_response(
            {"success": True, "recommendations": [{"id": "A"}, {"_id": "B"}, {"product_id": "C"}, {"id": 42}]}
        )
        assert [r.product_id for r in refs] == ["A", "B", "C", "42"]

    def test_drops_malformed_entries(self):
        refs = parse_ranking_response(
            {"success": True, "recommendations": [{"name": "no id"}, "P2", None, {"id": ""}, {"id": "P3"}]}
        )
        assert [r.product_id for r in refs] == ["P3"]

    def test_extra_fields_are_ignored(self):
        refs = parse_ranking_response({"success": True, "recommendations": [{"id": "A", "name": "x", "price": 3}]})
        assert refs[0].product_id == "A"

    @pytest.mark.parametrize(
        "data",
        [
            ["P2"],
            {"success": False, "error": "boom"},
            {"recommendations": [{"id": "A"}]},
            {"success": True, "recommendations": {"id": "A"}},
        ],
    )
    def test_protocol_errors(self, data):
        with pytest.raises(RankingProtocolError):
            parse_ranking_response(data)

    @pytest.mark.parametrize(
        "data",
        [
            {"success": True},
            {"success": True, "recommendations": []},
            {"success": True, "recommendations": [{"name": "no id"}]},
        ],
    )
    def test_empty(self, data):
        with pytest.raises(EmptyRankingError):
            parse_ranking_response(data)


class TestFetchRanking:
    @pytest.mark.asyncio
    async def test_success_posts_payload(self, context, profile):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "recommendations": [{"id": "P2"}, {"id": "P3"}], "source": "ai"})

        outcome = await _client(handler).fetch_ranking(context, profile, 2)

        assert [r.product_id for r in outcome] == ["P2", "P3"]
        assert seen["method"] == "POST"
        assert seen["url"] == URL
        assert seen["body"]["limit"] == 2
        assert seen["body"]["currentProduct"]["id"] == "P1"

    @pytest.mark.asyncio
    async def test_non_success_is_protocol_failure(self, context, profile):
        outcome = await _client(lambda r: httpx.Response(200, json={"success": False, "error": "nope"})).fetch_ranking(
            context, profile, 4
        )
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "protocol"

    @pytest.mark.asyncio
    async def test_http_error_status_is_protocol_failure(self, context, profile):
        outcome = await _client(lambda r: httpx.Response(500, json={"success": False})).fetch_ranking(context, profile, 4)
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "protocol"

    @pytest.mark.asyncio
    async def test_invalid_json_is_protocol_failure(self, context, profile):
        outcome = await _client(lambda r: httpx.Response(200, content=b"<html>oops</html>")).fetch_ranking(
            context, profile, 4
        )
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "protocol"

    @pytest.mark.asyncio
    async def test_empty_recommendations(self, context, profile):
        outcome = await _client(lambda r: httpx.Response(200, json={"success": True, "recommendations": []})).fetch_ranking(
            context, profile, 4
        )
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "empty"

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self, context, profile):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        outcome = await _client(handler).fetch_ranking(context, profile, 4)
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "transport"

    @pytest.mark.asyncio
    async def test_read_timeout_is_timeout_failure(self, context, profile):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        outcome = await _client(handler).fetch_ranking(context, profile, 4)
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "timeout"

    @pytest.mark.asyncio
    async def test_overall_deadline(self, context, profile):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={"success": True, "recommendations": [{"id": "P2"}]})

        outcome = await _client(handler, timeout_s=0.05).fetch_ranking(context, profile, 4)
        assert isinstance(outcome, RankingFailure)
        assert outcome.kind == "timeout"
