"""LiteAPI client: adapter for places, rates, hotel details and booking.

Every call takes the channel's API key explicitly; there is no default key.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from staybook.config import Settings
from staybook.errors import UpstreamError, UpstreamTimeout, UpstreamUnauthorized
from staybook.services.cache_service import CacheService

logger = logging.getLogger(__name__)

DETAILS_TIMEOUT_SECONDS = 4

REVIEW_COUNT_FIELDS = ("reviewCount", "review_count", "reviewsCount", "numberOfReviews")
STAR_RATING_FIELDS = ("starRating", "star_rating", "stars")


@dataclass
class RatesSearchParams:
    """Body of a LiteAPI /hotels/rates search."""
    checkin: str
    checkout: str
    occupancies: list[dict]
    currency: str = "USD"
    guest_nationality: str = "EG"
    place_id: str | None = None
    ai_search: str | None = None
    hotel_ids: list[str] | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius: int | None = None
    country_code: str | None = None
    language: str | None = None
    limit: int | None = None
    timeout: float | None = None
    margin: float | None = None
    additional_markup: float | None = None
    refundable_rates_only: bool = False
    max_rates_per_hotel: int | None = None
    star_rating: list[int] | None = None
    min_rating: float | None = None
    min_reviews_count: int | None = None
    facilities: list[int] | None = None
    strict_facility_filtering: bool | None = None

    def to_body(self) -> dict:
        body: dict[str, Any] = {
            "occupancies": [
                {"adults": o["adults"], **({"children": o["children"]} if o.get("children") else {})}
                for o in self.occupancies
            ],
            "currency": self.currency,
            "guestNationality": self.guest_nationality,
            "checkin": self.checkin,
            "checkout": self.checkout,
            "roomMapping": True,
            "includeHotelData": True,
        }

        optional = {
            "language": self.language,
            "limit": self.limit,
            "timeout": self.timeout,
            "margin": self.margin,
            "additionalMarkup": self.additional_markup,
            "maxRatesPerHotel": self.max_rates_per_hotel,
            "starRating": self.star_rating,
            "minRating": self.min_rating,
            "minReviewsCount": self.min_reviews_count,
            "facilities": self.facilities,
            "strictFacilityFiltering": self.strict_facility_filtering,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        if self.refundable_rates_only:
            body["refundableRatesOnly"] = True

        if self.hotel_ids:
            body["hotelIds"] = self.hotel_ids
        elif self.place_id:
            body["placeId"] = self.place_id
        elif self.ai_search:
            body["aiSearch"] = self.ai_search
        elif self.latitude is not None and self.longitude is not None and self.radius:
            body["latitude"] = self.latitude
            body["longitude"] = self.longitude
            body["radius"] = self.radius
            if self.country_code:
                body["countryCode"] = self.country_code

        return body


def _first_present(data: dict, keys: tuple[str, ...]):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_number(value):
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def extract_hotel_details(raw: dict | None) -> dict:
    """Pull rating, review count, stars and location from a hotel payload.

    The provider has used several field names for the same values; all known
    variants are accepted. Missing values are left out of the result.
    """
    if not isinstance(raw, dict):
        return {}
    data = raw.get("data") if isinstance(raw.get("data"), dict) else raw

    details: dict[str, Any] = {}
    rating = _as_number(data.get("rating"))
    if rating is not None:
        details["rating"] = rating
    review_count = _as_number(_first_present(data, REVIEW_COUNT_FIELDS))
    if review_count is not None:
        details["review_count"] = int(review_count)
    star_rating = _as_number(_first_present(data, STAR_RATING_FIELDS))
    if star_rating is not None:
        details["star_rating"] = star_rating

    location = data.get("location") or {}
    lat = location.get("latitude", data.get("latitude"))
    lng = location.get("longitude", data.get("longitude"))
    if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
        details["location"] = {"latitude": float(lat), "longitude": float(lng)}
    return details


class LiteApiClient:
    """Adapter for the LiteAPI REST API (data/rates on one host, booking on another)."""

    def __init__(
        self,
        settings: Settings,
        cache: CacheService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.cache = cache
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.liteapi_timeout,
                transport=self._transport,
                headers={"accept": "application/json"},
            )
        return self._client

    def _url(self, base: str, path: str) -> str:
        root = self.settings.liteapi_book_url if base == "book" else self.settings.liteapi_base_url
        return f"{root.rstrip('/')}{path}"

    async def _request(
        self,
        base: str,
        path: str,
        method: str,
        api_key: str,
        params: dict | None = None,
        body: dict | None = None,
    ) -> dict:
        client = await self._get_client()
        try:
            resp = await client.request(
                method,
                self._url(base, path),
                params=params,
                json=body if method == "POST" else None,
                headers={"X-API-Key": api_key},
            )
        except httpx.TimeoutException as e:
            logger.error(f"LiteAPI {method} {path} timed out: {e}")
            raise UpstreamTimeout()
        except httpx.RequestError as e:
            logger.error(f"LiteAPI {method} {path} request failed: {e}")
            raise UpstreamError(f"LiteAPI {method} {path} request failed", status_code=502)

        try:
            data = resp.json()
        except ValueError:
            data = None

        error = data.get("error") if isinstance(data, dict) else None
        if resp.status_code >= 400 or error:
            message = None
            code = None
            if isinstance(error, dict):
                message = error.get("message") or error.get("description")
                code = error.get("code")
            elif isinstance(error, str):
                message = error
            if not message:
                message = f"LiteAPI {method} {path} failed with status {resp.status_code}"
            if code:
                message = f"[{code}] {message}"

            status = resp.status_code if resp.status_code >= 400 else 500
            logger.warning(f"LiteAPI {method} {path} -> {status}: {message}")
            if status == 401:
                raise UpstreamUnauthorized(message)
            raise UpstreamError(message, status_code=status)

        return data if isinstance(data, dict) else {}

    async def get_places(self, text_query: str, language: str | None, api_key: str) -> dict:
        params = {"textQuery": text_query}
        if language:
            params["language"] = language
        return await self._request("api", "/data/places", "GET", api_key, params=params)

    async def search_rates(self, params: RatesSearchParams, api_key: str) -> dict:
        return await self._request("api", "/hotels/rates", "POST", api_key, body=params.to_body())

    async def get_hotel_rates(self, params: RatesSearchParams, api_key: str) -> dict:
        """Rates for the hotel(s) named in ``params.hotel_ids``."""
        return await self.search_rates(params, api_key)

    async def get_hotel_details(self, hotel_id: str, language: str | None, api_key: str) -> dict:
        params = {"hotelId": hotel_id, "timeout": str(DETAILS_TIMEOUT_SECONDS)}
        if language:
            params["language"] = language
        return await self._request("api", "/data/hotel", "GET", api_key, params=params)

    async def get_cached_hotel_details(self, hotel_id: str, language: str | None, api_key: str) -> dict | None:
        """Extracted details for one hotel, from cache when possible. None on failure."""
        if self.cache:
            cached = await self.cache.get_hotel_details(hotel_id, language)
            if cached is not None:
                return cached

        try:
            raw = await self.get_hotel_details(hotel_id, language, api_key)
        except UpstreamError as e:
            logger.warning(f"Hotel details failed for {hotel_id}: {e.message}")
            return None

        details = extract_hotel_details(raw)
        if self.cache and details:
            await self.cache.set_hotel_details(hotel_id, language, details)
        return details

    async def prebook(self, offer_id: str, use_payment_sdk: bool, api_key: str) -> dict:
        body = {"offerId": offer_id, "usePaymentSdk": use_payment_sdk}
        return await self._request("book", "/rates/prebook", "POST", api_key, body=body)

    async def book(self, body: dict, api_key: str) -> dict:
        return await self._request("book", "/rates/book", "POST", api_key, body=body)

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
