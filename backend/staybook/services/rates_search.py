"""Rate search orchestrator.

Validates a search, guards it against restricted places, runs the primary and
refundable-only searches concurrently, and assembles per-hotel price, refund
and rating summaries for the results page.
"""

import asyncio
import logging
import math
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, TypeVar

from staybook.config import Settings
from staybook.errors import NoRatesAvailable, NotFound, UpstreamError, ValidationError
from staybook.schemas.rates import HotelRatesRequest, OccupancyIn, RatesSearchRequest
from staybook.search.dates import parse_yyyymmdd
from staybook.search.occupancy import is_valid_child_age
from staybook.search.rates_timeout import clamp_rates_timeout
from staybook.services.cache_service import CacheService
from staybook.services.channel_keys import Channel
from staybook.services.content_filter import ContentFilter, content_filter as default_filter
from staybook.services.liteapi_client import LiteApiClient, RatesSearchParams, extract_hotel_details
from staybook.services.margin_resolver import MarginResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

SEARCH_MODES = ("place", "vibe")
DEFAULT_ADULTS = 2


async def run_in_chunks(items: list[T], size: int, fn: Callable[[T], Awaitable[R]]) -> list[R]:
    """Run ``fn`` over items ``size`` at a time. Results line up with ``items``."""
    results: list[R] = []
    for start in range(0, len(items), size):
        chunk = items[start:start + size]
        results.extend(await asyncio.gather(*(fn(item) for item in chunk)))
    return results


@dataclass
class RatesQuery:
    mode: str
    checkin: str
    checkout: str
    occupancies: list[dict]
    place_id: str | None = None
    ai_search: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius: int | None = None
    country_code: str | None = None
    currency: str = "USD"
    nationality: str = "EG"
    language: str | None = None
    timeout: int = 5
    star_rating: list[int] | None = None
    min_rating: float | None = None
    min_reviews_count: int | None = None
    facilities: list[int] | None = None
    strict_facility_filtering: bool | None = None

    @property
    def has_area(self) -> bool:
        return self.latitude is not None and self.longitude is not None and bool(self.radius)


@dataclass
class HotelRatesQuery:
    hotel_id: str
    checkin: str
    checkout: str
    occupancies: list[dict]
    currency: str = "USD"
    nationality: str = "EG"
    language: str | None = None


def normalize_occupancies(rooms: list[OccupancyIn] | None, legacy_adults: int | None) -> list[dict]:
    """Rooms without an adult are dropped, as are child ages outside 0-17."""
    if not rooms:
        adults = legacy_adults if legacy_adults is not None and legacy_adults >= 1 else DEFAULT_ADULTS
        return [{"adults": adults, "children": []}]

    occupancies = []
    for room in rooms:
        if room.adults is None or room.adults < 1:
            continue
        occupancies.append({
            "adults": room.adults,
            "children": [age for age in room.children if is_valid_child_age(age)],
        })
    if not occupancies:
        raise ValidationError("At least one room with at least 1 adult is required")
    return occupancies


def _validate_dates(checkin: str | None, checkout: str | None):
    if not checkin or not checkout:
        raise ValidationError("checkin and checkout are required")
    start = parse_yyyymmdd(checkin)
    end = parse_yyyymmdd(checkout)
    if start is None or end is None:
        raise ValidationError("checkin and checkout must be YYYY-MM-DD dates")
    if end <= start:
        raise ValidationError("checkout must be after checkin")


def build_rates_query(req: RatesSearchRequest, settings: Settings) -> RatesQuery:
    if not req.mode:
        raise ValidationError("mode, checkin and checkout are required")
    if req.mode not in SEARCH_MODES:
        raise ValidationError(f"mode must be one of: {', '.join(SEARCH_MODES)}")
    _validate_dates(req.checkin, req.checkout)
    for field in ("latitude", "longitude", "radius", "min_rating"):
        value = getattr(req, field)
        if value is not None and not math.isfinite(value):
            raise ValidationError(f"{field} must be a finite number")
    occupancies = normalize_occupancies(req.occupancies, req.adults)

    query = RatesQuery(
        mode=req.mode,
        checkin=req.checkin,
        checkout=req.checkout,
        occupancies=occupancies,
        place_id=req.place_id or None,
        ai_search=(req.ai_search or "").strip() or None,
        latitude=req.latitude,
        longitude=req.longitude,
        radius=int(req.radius) if req.radius else None,
        country_code=(req.country_code or "").strip().upper() or None,
        currency=req.currency or settings.default_currency,
        nationality=req.guest_nationality or settings.default_nationality,
        language=req.language,
        timeout=clamp_rates_timeout(
            req.timeout,
            default=settings.rates_default_timeout,
            low=settings.rates_min_timeout,
            high=settings.rates_max_timeout,
        ),
        star_rating=req.star_rating,
        min_rating=req.min_rating,
        min_reviews_count=req.min_reviews_count,
        facilities=req.facilities,
        strict_facility_filtering=req.strict_facility_filtering,
    )

    if query.mode == "place" and not query.place_id and not query.has_area:
        raise ValidationError("placeId or a search area is required for place mode")
    if query.mode == "vibe" and not query.ai_search:
        raise ValidationError("aiSearch is required for vibe mode")
    return query


def build_hotel_rates_query(req: HotelRatesRequest, settings: Settings) -> HotelRatesQuery:
    if not req.hotel_id:
        raise ValidationError("hotelId, checkin and checkout are required")
    _validate_dates(req.checkin, req.checkout)
    return HotelRatesQuery(
        hotel_id=req.hotel_id,
        checkin=req.checkin,
        checkout=req.checkout,
        occupancies=normalize_occupancies(req.occupancies, req.adults),
        currency=req.currency or settings.default_currency,
        nationality=req.guest_nationality or settings.default_nationality,
        language=req.language,
    )


def _offer_total(room_type: dict) -> dict | None:
    first_rate = (room_type.get("rates") or [{}])[0]
    total = (
        room_type.get("offerRetailRate")
        or room_type.get("suggestedSellingPrice")
        or ((first_rate.get("retailRate") or {}).get("total") or [None])[0]
    )
    if not isinstance(total, dict) or total.get("amount") is None:
        return None
    return total


def cheapest_price(item: dict) -> dict | None:
    """Cheapest offer of one hotel in a rates response, as a price summary."""
    best = None
    for room_type in item.get("roomTypes") or []:
        total = _offer_total(room_type)
        if total is None:
            continue
        if best is None or float(total["amount"]) < float(best[1]["amount"]):
            best = (room_type, total)
    if best is None:
        return None

    room_type, total = best
    first_rate = (room_type.get("rates") or [{}])[0]
    retail = first_rate.get("retailRate") or {}
    taxes = retail.get("taxesAndFees") or [{}]
    currency = total.get("currency") or ((retail.get("total") or [{}])[0] or {}).get("currency") or "USD"
    return {
        "amount": float(total["amount"]),
        "currency": currency,
        "refundable_tag": (first_rate.get("cancellationPolicies") or {}).get("refundableTag"),
        "tax_included": bool((taxes[0] or {}).get("included", False)),
    }


def rates_cache_params(params: RatesSearchParams, channel: Channel) -> dict:
    return {**asdict(params), "channel": Channel(channel).value}


class RateSearchOrchestrator:
    def __init__(
        self,
        liteapi: LiteApiClient,
        cache: CacheService,
        settings: Settings,
        restrictions: ContentFilter | None = None,
    ):
        self.liteapi = liteapi
        self.cache = cache
        self.settings = settings
        self.restrictions = restrictions or default_filter

    def guard(self, place_id: str | None = None, country_code: str | None = None,
              latitude: float | None = None, longitude: float | None = None):
        """Refuse restricted destinations before any upstream call."""
        if (
            self.restrictions.should_filter_place(place_id=place_id, country_code=country_code)
            or self.restrictions.is_location_restricted(latitude, longitude)
        ):
            logger.info(f"[Content Filter] Blocked rate search: place={place_id} country={country_code}")
            raise NotFound()

    def _search_params(self, query: RatesQuery, margin: MarginResult) -> RatesSearchParams:
        return RatesSearchParams(
            checkin=query.checkin,
            checkout=query.checkout,
            occupancies=query.occupancies,
            currency=query.currency,
            guest_nationality=query.nationality,
            place_id=query.place_id if query.mode == "place" else None,
            ai_search=query.ai_search if query.mode == "vibe" else None,
            latitude=query.latitude,
            longitude=query.longitude,
            radius=query.radius,
            country_code=query.country_code,
            language=query.language,
            limit=self.settings.rates_search_limit,
            timeout=query.timeout,
            margin=margin.margin,
            additional_markup=margin.additional_markup,
            max_rates_per_hotel=1,
            star_rating=query.star_rating,
            min_rating=query.min_rating,
            min_reviews_count=query.min_reviews_count,
            facilities=query.facilities,
            strict_facility_filtering=query.strict_facility_filtering,
        )

    async def _refundable_hotel_ids(self, params: RatesSearchParams, api_key: str) -> dict[str, bool] | None:
        refundable_params = RatesSearchParams(**{**asdict(params), "refundable_rates_only": True})
        try:
            resp = await self.liteapi.search_rates(refundable_params, api_key)
        except UpstreamError as e:
            logger.warning(f"Refundable-only search failed, continuing without refund flags: {e.message}")
            return None
        return {item["hotelId"]: True for item in resp.get("data") or [] if item.get("hotelId")}

    async def search_rates(self, query: RatesQuery, api_key: str, margin: MarginResult, channel: Channel) -> dict:
        self.guard(query.place_id, query.country_code, query.latitude, query.longitude)

        params = self._search_params(query, margin)
        cache_params = rates_cache_params(params, channel)
        # promo badge belongs to the caller, never to the cached entry
        promo_config = margin.promo_config(channel)
        cached = await self.cache.get_rates_search(cache_params)
        if cached is not None:
            logger.info(f"Rates search cache hit ({query.mode}, {query.checkin}..{query.checkout})")
            return {**cached, "promo_config": promo_config}

        refundable_task = asyncio.create_task(self._refundable_hotel_ids(params, api_key))
        try:
            primary = await self.liteapi.search_rates(params, api_key)
        except BaseException:
            refundable_task.cancel()
            raise
        refundable = await refundable_task

        offers = primary.get("data") or []
        hotels = primary.get("hotels") or []

        prices_by_hotel_id = {}
        for item in offers:
            hotel_id = item.get("hotelId")
            price = cheapest_price(item) if hotel_id else None
            if price is not None:
                prices_by_hotel_id[hotel_id] = price

        if (offers or hotels) and not prices_by_hotel_id:
            raise NoRatesAvailable()

        hotel_details = await self._enrich(offers, hotels, query.language, api_key)

        result = {
            "mode": query.mode,
            "offers": offers,
            "hotels": hotels,
            "prices_by_hotel_id": prices_by_hotel_id,
            "has_refundable_rate_by_hotel_id": refundable or {},
            "hotel_details_by_hotel_id": hotel_details,
        }
        logger.info(
            f"Rates search ({query.mode}): {len(offers)} offers, "
            f"{len(prices_by_hotel_id)} priced, {len(refundable or {})} refundable"
        )
        # degraded results (no refund flags) are not cached
        if refundable is not None:
            await self.cache.set_rates_search(cache_params, result)
        return {**result, "promo_config": promo_config}

    async def _enrich(self, offers: list[dict], hotels: list[dict], language: str | None, api_key: str) -> dict:
        details: dict[str, dict] = {}

        # fields embedded in the rates response first
        for hotel in hotels:
            if hotel.get("id"):
                embedded = extract_hotel_details(hotel)
                if embedded:
                    details.setdefault(hotel["id"], {}).update(embedded)
        for item in offers:
            if item.get("hotelId") and isinstance(item.get("hotel"), dict):
                embedded = extract_hotel_details(item["hotel"])
                if embedded:
                    details.setdefault(item["hotelId"], {}).update(embedded)

        hotel_ids = list(dict.fromkeys(item["hotelId"] for item in offers if item.get("hotelId")))
        hotel_ids = hotel_ids[:self.settings.enrichment_max_hotels]
        if not hotel_ids:
            return details

        results = await run_in_chunks(
            hotel_ids,
            self.settings.details_batch_concurrency,
            lambda hotel_id: self.liteapi.get_cached_hotel_details(hotel_id, language, api_key),
        )
        for hotel_id, fetched in zip(hotel_ids, results):
            if fetched:
                details.setdefault(hotel_id, {}).update(fetched)
        return details

    async def hotel_rates(self, query: HotelRatesQuery, api_key: str, margin: MarginResult, channel: Channel) -> dict:
        params = RatesSearchParams(
            checkin=query.checkin,
            checkout=query.checkout,
            occupancies=query.occupancies,
            currency=query.currency,
            guest_nationality=query.nationality,
            hotel_ids=[query.hotel_id],
            language=query.language,
            margin=margin.margin,
            additional_markup=margin.additional_markup,
        )
        resp = await self.liteapi.get_hotel_rates(params, api_key)
        return {**resp, "promo_config": margin.promo_config(channel)}

    async def hotel_details_batch(self, hotel_ids: list, language: str | None, api_key: str) -> dict:
        ids = [hotel_id for hotel_id in hotel_ids if isinstance(hotel_id, str) and hotel_id]
        ids = ids[:self.settings.details_batch_max_ids]
        if not ids:
            raise ValidationError("hotelIds array is required and must contain at least one id")

        results = await run_in_chunks(
            ids,
            self.settings.details_batch_concurrency,
            lambda hotel_id: self.liteapi.get_cached_hotel_details(hotel_id, language, api_key),
        )
        return {
            "hotel_details_by_hotel_id": {
                hotel_id: details for hotel_id, details in zip(ids, results) if details
            }
        }
