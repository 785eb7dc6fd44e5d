import asyncio
import json

import httpx
import pytest

from conftest import rates_item
from staybook.auth.identity import build_user_profile
from staybook.errors import NoRatesAvailable, NotFound, UpstreamError, UpstreamUnauthorized, ValidationError
from staybook.schemas.rates import RatesSearchRequest
from staybook.services.channel_keys import Channel
from staybook.services.liteapi_client import LiteApiClient, RatesSearchParams, extract_hotel_details
from staybook.services.margin_resolver import EMPTY_MARGIN, MarginResolver, MarginResult
from staybook.services.rates_search import (
    RateSearchOrchestrator,
    build_rates_query,
    cheapest_price,
    run_in_chunks,
)
from staybook.services.segment_store import StaticSegmentStore

RATES_PATH = "/v3.0/hotels/rates"
DETAILS_PATH = "/v3.0/data/hotel"


def _orchestrator(settings, upstream, cache):
    liteapi = LiteApiClient(settings, cache=cache, transport=upstream.transport)
    return RateSearchOrchestrator(liteapi, cache, settings)


def _query(settings, **overrides):
    body = {
        "mode": "place",
        "place_id": "cairo",
        "checkin": "2026-11-01",
        "checkout": "2026-11-03",
        "occupancies": [{"adults": 2, "children": [5]}],
        **overrides,
    }
    return build_rates_query(RatesSearchRequest(**body), settings)


def _rates_handler(refundable_status=200):
    def handler(request):
        body = json.loads(request.content)
        if body.get("refundableRatesOnly"):
            if refundable_status != 200:
                return httpx.Response(refundable_status, json={"error": {"message": "refundable search broke"}})
            return httpx.Response(200, json={"data": [{"hotelId": "h1"}]})
        return httpx.Response(200, json={
            "data": [rates_item("h1", 240.0), rates_item("h2", 95.5, refundable_tag="NRFN")],
            "hotels": [
                {"id": "h1", "name": "Nile Ritz", "rating": 9.1, "reviewCount": 812, "starRating": 5},
                {"id": "h2", "name": "Zamalek Inn"},
            ],
        })
    return handler


def _details_handler(request):
    hotel_id = request.url.params["hotelId"]
    return httpx.Response(200, json={"data": {
        "id": hotel_id,
        "rating": 8.0,
        "reviewsCount": 10,
        "stars": 3,
        "location": {"latitude": 30.05, "longitude": 31.24},
    }})


# --- validation ---

@pytest.mark.parametrize("overrides,message", [
    ({"mode": None}, "mode"),
    ({"mode": "flights"}, "mode must be one of"),
    ({"checkin": None}, "checkin and checkout are required"),
    ({"checkout": "2026-02-30"}, "YYYY-MM-DD"),
    ({"checkout": "2026-11-01"}, "checkout must be after checkin"),
    ({"place_id": None}, "placeId or a search area"),
    ({"mode": "vibe", "place_id": None, "ai_search": "   "}, "aiSearch is required"),
    ({"occupancies": [{"adults": 0}]}, "At least one room"),
    ({"place_id": None, "latitude": 30.0, "longitude": 31.0, "radius": float("inf")}, "radius must be a finite number"),
    ({"latitude": float("nan"), "longitude": 31.0}, "latitude must be a finite number"),
])
def test_invalid_searches_are_rejected(settings, overrides, message):
    with pytest.raises(ValidationError) as exc:
        _query(settings, **overrides)
    assert message in exc.value.message


def test_query_normalization(settings):
    query = _query(
        settings,
        place_id=None,
        latitude=27.2,
        longitude=33.8,
        radius=5000.0,
        country_code=" eg ",
        timeout=99,
        occupancies=[{"adults": 2, "children": [4, 25, -1, "x"]}, {"adults": 0}],
    )
    assert query.has_area
    assert query.country_code == "EG"
    assert query.timeout == 30
    assert query.occupancies == [{"adults": 2, "children": [4]}]
    assert query.currency == "USD"


def test_legacy_adults(settings):
    query = build_rates_query(RatesSearchRequest(
        mode="place", place_id="cairo", checkin="2026-11-01", checkout="2026-11-02", adults=3,
    ), settings)
    assert query.occupancies == [{"adults": 3, "children": []}]


# --- provider body ---

def test_body_target_priority():
    params = RatesSearchParams(
        checkin="2026-11-01", checkout="2026-11-02", occupancies=[{"adults": 2, "children": []}],
        place_id="cairo", ai_search="beach", latitude=1.0, longitude=2.0, radius=1000,
    )
    body = params.to_body()
    assert body["placeId"] == "cairo"
    assert "aiSearch" not in body and "latitude" not in body
    assert body["occupancies"] == [{"adults": 2}]
    assert body["roomMapping"] is True

    params.hotel_ids = ["h1"]
    assert params.to_body()["hotelIds"] == ["h1"]
    assert "placeId" not in params.to_body()


def test_cheapest_price_picks_lowest_offer():
    item = rates_item("h1", 200.0)
    item["roomTypes"].append(rates_item("h1", 150.0, refundable_tag="NRFN")["roomTypes"][0])
    assert cheapest_price(item) == {"amount": 150.0, "currency": "USD", "refundable_tag": "NRFN", "tax_included": True}
    assert cheapest_price({"hotelId": "h1", "roomTypes": []}) is None


def test_extract_hotel_details_accepts_field_variants():
    assert extract_hotel_details({"data": {"rating": "8.4", "numberOfReviews": 12, "star_rating": 4}}) == {
        "rating": 8.4, "review_count": 12, "star_rating": 4.0,
    }
    assert extract_hotel_details({"latitude": 30, "longitude": 31}) == {"location": {"latitude": 30.0, "longitude": 31.0}}
    assert extract_hotel_details(None) == {}


# --- orchestration ---

@pytest.mark.asyncio
async def test_search_combines_primary_and_refundable(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, handler=_rates_handler())
    upstream.add("GET", DETAILS_PATH, handler=_details_handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)
    margin = MarginResult(margin=7)

    result = await orchestrator.search_rates(_query(settings), "cug-test-key", margin, Channel.CUG)

    assert result["prices_by_hotel_id"]["h2"]["amount"] == 95.5
    assert result["has_refundable_rate_by_hotel_id"] == {"h1": True}
    assert result["promo_config"] == {"is_cug": True, "display_discount_percent": None}
    # fetched details are merged over the fields embedded in the rates response
    assert result["hotel_details_by_hotel_id"]["h1"]["review_count"] == 10
    assert result["hotel_details_by_hotel_id"]["h2"]["star_rating"] == 3.0

    rate_calls = upstream.calls(RATES_PATH)
    assert len(rate_calls) == 2
    for call in rate_calls:
        assert call.headers["X-API-Key"] == "cug-test-key"
        body = json.loads(call.content)
        assert body["placeId"] == "cairo"
        assert body["margin"] == 7
        assert body["maxRatesPerHotel"] == 1


@pytest.mark.asyncio
async def test_successful_search_is_cached(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, handler=_rates_handler())
    upstream.add("GET", DETAILS_PATH, handler=_details_handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    first = await orchestrator.search_rates(_query(settings), "b2c-test-key", EMPTY_MARGIN, Channel.B2C)
    second = await orchestrator.search_rates(_query(settings), "b2c-test-key", EMPTY_MARGIN, Channel.B2C)

    assert first == second
    assert len(upstream.calls(RATES_PATH)) == 2


@pytest.mark.asyncio
async def test_channels_do_not_share_cache_entries(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, handler=_rates_handler())
    upstream.add("GET", DETAILS_PATH, handler=_details_handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    await orchestrator.search_rates(_query(settings), "b2c-test-key", EMPTY_MARGIN, Channel.B2C)
    await orchestrator.search_rates(_query(settings), "cug-test-key", EMPTY_MARGIN, Channel.CUG)

    assert len(upstream.calls(RATES_PATH)) == 4


@pytest.mark.asyncio
async def test_refundable_failure_degrades_and_is_not_cached(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, handler=_rates_handler(refundable_status=500))
    upstream.add("GET", DETAILS_PATH, handler=_details_handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    result = await orchestrator.search_rates(_query(settings), "b2c-test-key", EMPTY_MARGIN, Channel.B2C)

    assert set(result["prices_by_hotel_id"]) == {"h1", "h2"}
    assert result["has_refundable_rate_by_hotel_id"] == {}
    assert fake_cache.rates == {}


@pytest.mark.asyncio
async def test_cached_results_carry_each_callers_own_promo(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, handler=_rates_handler())
    upstream.add("GET", DETAILS_PATH, handler=_details_handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)
    resolver = MarginResolver(StaticSegmentStore(), "breadfast.com")
    employee = resolver.resolve(
        build_user_profile(user_id="u-1", email="a@breadfast.com", staff_domain="breadfast.com"), Channel.CUG,
    )
    adventurer = resolver.resolve(
        build_user_profile(user_id="u-2", email="b@gmail.com", user_type="member", loyalty_level="adventurer"),
        Channel.CUG,
    )
    assert employee.margin == adventurer.margin

    first = await orchestrator.search_rates(_query(settings), "cug-test-key", employee, Channel.CUG)
    second = await orchestrator.search_rates(_query(settings), "cug-test-key", adventurer, Channel.CUG)

    assert len(upstream.calls(RATES_PATH)) == 2
    assert first["promo_config"]["display_discount_percent"] == 10
    assert second["promo_config"]["display_discount_percent"] is None
    assert all("promo_config" not in entry for entry in fake_cache.rates.values())
    assert {k: v for k, v in first.items() if k != "promo_config"} == {
        k: v for k, v in second.items() if k != "promo_config"
    }


@pytest.mark.asyncio
async def test_failed_primary_search_cancels_the_refundable_search(settings, upstream, fake_cache):
    refundable_finished = []

    async def handler(request):
        body = json.loads(request.content)
        if body.get("refundableRatesOnly"):
            await asyncio.sleep(0.2)
            refundable_finished.append(True)
            return httpx.Response(200, json={"data": []})
        return httpx.Response(500, json={"error": {"message": "rates down"}})

    upstream.add("POST", RATES_PATH, handler=handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    with pytest.raises(UpstreamError):
        await orchestrator.search_rates(_query(settings), "k", EMPTY_MARGIN, Channel.B2C)
    await asyncio.sleep(0.3)

    assert refundable_finished == []
    assert fake_cache.rates == {}


@pytest.mark.asyncio
async def test_unauthorized_key(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, {"error": {"code": 4001, "message": "invalid api key"}}, status=401)
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    with pytest.raises(UpstreamUnauthorized) as exc:
        await orchestrator.search_rates(_query(settings), "bad-key", EMPTY_MARGIN, Channel.B2C)
    assert exc.value.status_code == 401
    assert exc.value.message == "[4001] invalid api key"


@pytest.mark.asyncio
async def test_error_inside_a_200_response(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, {"error": "no availability"})
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    with pytest.raises(UpstreamError) as exc:
        await orchestrator.search_rates(_query(settings), "k", EMPTY_MARGIN, Channel.B2C)
    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_hotels_without_prices_is_no_rates(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, {"data": [{"hotelId": "h1", "roomTypes": []}], "hotels": [{"id": "h1"}]})
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    with pytest.raises(NoRatesAvailable):
        await orchestrator.search_rates(_query(settings), "k", EMPTY_MARGIN, Channel.B2C)


@pytest.mark.asyncio
async def test_empty_response_is_an_empty_result(settings, upstream, fake_cache):
    upstream.add("POST", RATES_PATH, {"data": [], "hotels": []})
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    result = await orchestrator.search_rates(_query(settings), "k", EMPTY_MARGIN, Channel.B2C)
    assert result["offers"] == []
    assert result["prices_by_hotel_id"] == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"place_id": "ChIJH3w7GaZMHRURkD-WwKJy-8E"},
    {"place_id": None, "latitude": 32.08, "longitude": 34.78, "radius": 5000},
    {"country_code": "il"},
])
async def test_restricted_destinations_never_reach_the_provider(settings, upstream, fake_cache, overrides):
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    with pytest.raises(NotFound) as exc:
        await orchestrator.search_rates(_query(settings, **overrides), "k", EMPTY_MARGIN, Channel.B2C)
    assert exc.value.message == "Place not available"
    assert upstream.requests == []


# --- hotel details batch ---

@pytest.mark.asyncio
async def test_run_in_chunks_limits_concurrency():
    running = 0
    peak = 0

    async def work(item):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.001)
        running -= 1
        return item * 2

    results = await run_in_chunks(list(range(40)), 15, work)

    assert results == [i * 2 for i in range(40)]
    assert peak == 15


@pytest.mark.asyncio
async def test_batch_is_truncated_to_80_ids(settings, upstream, fake_cache):
    in_flight = 0
    peak = 0

    async def handler(request):
        nonlocal in_flight, peak
        hotel_id = request.url.params["hotelId"]
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        number = int(hotel_id[1:])
        return httpx.Response(200, json={"data": {"id": hotel_id, "rating": number / 10, "reviewsCount": number}})

    upstream.add("GET", DETAILS_PATH, handler=handler)
    orchestrator = _orchestrator(settings, upstream, fake_cache)
    hotel_ids = [f"h{i}" for i in range(84, -1, -1)]

    result = await orchestrator.hotel_details_batch(hotel_ids, None, "k")

    details = result["hotel_details_by_hotel_id"]
    assert list(details) == hotel_ids[:80]
    for hotel_id, entry in details.items():
        number = int(hotel_id[1:])
        assert entry == {"rating": number / 10, "review_count": number}
    assert len(upstream.calls(DETAILS_PATH)) == 80
    assert {"h4", "h3", "h2", "h1", "h0"}.isdisjoint(details)
    assert peak == 15


@pytest.mark.asyncio
async def test_batch_uses_cache_and_skips_failures(settings, upstream, fake_cache):
    def handler(request):
        if request.url.params["hotelId"] == "broken":
            return httpx.Response(500, json={"error": {"message": "boom"}})
        return _details_handler(request)

    upstream.add("GET", DETAILS_PATH, handler=handler)
    fake_cache.details[("cached", "en")] = {"rating": 7.5}
    orchestrator = _orchestrator(settings, upstream, fake_cache)

    result = await orchestrator.hotel_details_batch(["cached", "broken", "fresh", 42, ""], "en", "k")

    assert result["hotel_details_by_hotel_id"]["cached"] == {"rating": 7.5}
    assert "broken" not in result["hotel_details_by_hotel_id"]
    assert fake_cache.details[("fresh", "en")]["star_rating"] == 3.0
    assert sorted(r.url.params["hotelId"] for r in upstream.requests) == ["broken", "fresh"]


@pytest.mark.asyncio
async def test_batch_without_ids(settings, upstream, fake_cache):
    orchestrator = _orchestrator(settings, upstream, fake_cache)
    with pytest.raises(ValidationError):
        await orchestrator.hotel_details_batch([None, ""], None, "k")
