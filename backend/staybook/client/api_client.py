import logging

import httpx

from staybook.search.results_query import ResultsQueryParams
from staybook.search.occupancy import to_api_occupancies
from staybook.search.rates_timeout import clamp_rates_timeout

logger = logging.getLogger(__name__)

DEFAULT_AREA_RADIUS = 50_000
PLACE_ID_TYPES = {"city", "country"}


def rates_search_body(
    params: ResultsQueryParams,
    currency: str,
    language: str | None = None,
    timeout=None,
) -> dict:
    """Request body for POST /api/rates/search built from results-page params.

    City and country selections search by place id. Other place types with
    coordinates search the surrounding area instead.
    """
    body: dict = {"mode": params.mode}
    use_place_id = params.mode == "place" and params.place_type in PLACE_ID_TYPES

    if params.mode == "place" and not use_place_id and params.latitude is not None and params.longitude is not None:
        body["latitude"] = params.latitude
        body["longitude"] = params.longitude
        body["radius"] = params.radius if params.radius is not None else DEFAULT_AREA_RADIUS
        if params.country_code:
            body["country_code"] = params.country_code
    elif params.mode == "place" and params.place_id:
        body["place_id"] = params.place_id
        if params.country_code:
            body["country_code"] = params.country_code
    elif params.mode == "vibe" and params.ai_search:
        body["ai_search"] = params.ai_search

    body.update({
        "checkin": params.checkin,
        "checkout": params.checkout,
        "occupancies": to_api_occupancies(params.occupancy_list),
        "currency": currency,
        "guest_nationality": params.nationality,
        "timeout": clamp_rates_timeout(timeout),
    })
    if language:
        body["language"] = language
    return body


class BffClient:
    """Thin async client for the BFF routes the results page uses."""

    def __init__(
        self,
        base_url: str,
        cookies: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 35.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._cookies = cookies or {}
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                cookies=self._cookies,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def search_rates(self, body: dict) -> dict:
        """POST the search. Error responses come back as their ``{"error": ...}`` payload."""
        client = await self._get_client()
        resp = await client.post("/api/rates/search", json=body)
        try:
            data = resp.json()
        except ValueError:
            logger.warning(f"Rates search returned non-JSON body (status {resp.status_code})")
            return {"error": {"message": "Search failed", "code": "SEARCH_FAILED"}}
        if resp.status_code >= 400 and "error" not in data:
            return {"error": {"message": "Search failed", "code": "SEARCH_FAILED"}}
        return data

    async def search_for_params(
        self,
        params: ResultsQueryParams,
        currency: str,
        language: str | None = None,
        timeout=None,
    ) -> dict:
        return await self.search_rates(rates_search_body(params, currency, language, timeout))

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
