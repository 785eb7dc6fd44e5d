"""Google Places client: autocomplete, place details and reverse geocoding.

``use_legacy_google_places`` picks the API generation. Both are adapted to
the internal shapes in places_adapter before anything else sees them.
"""

import logging
from urllib.parse import quote

import httpx

from staybook.config import Settings
from staybook.errors import ConfigurationError, NotFound, UpstreamError, UpstreamTimeout
from staybook.services.content_filter import ContentFilter, content_filter as default_filter
from staybook.services.places_adapter import (
    PlaceDetails,
    PlacePrediction,
    adapt_legacy_autocomplete,
    adapt_legacy_details,
    adapt_new_autocomplete,
    adapt_new_details,
)

logger = logging.getLogger(__name__)

LEGACY_AUTOCOMPLETE_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"
LEGACY_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
NEW_AUTOCOMPLETE_URL = "https://places.googleapis.com/v1/places:autocomplete"
NEW_DETAILS_URL = "https://places.googleapis.com/v1/places/{place_id}"

LEGACY_DETAILS_FIELDS = "place_id,name,formatted_address,geometry,address_components,types"
DEFAULT_DETAILS_FIELDS = ["id", "displayName", "formattedAddress", "location", "addressComponents", "types", "primaryType"]

# Legacy bias accepts a wide radius; the new API caps circles at 50 km
LEGACY_BIAS_RADIUS_M = 2_000_000
NEW_BIAS_RADIUS_M = 50_000

MIN_INPUT_LENGTH = 2


class PlacesClient:
    """Adapter for Google Places (legacy and new)."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        restrictions: ContentFilter | None = None,
    ):
        self.settings = settings
        self.use_legacy = settings.use_legacy_google_places
        self.restrictions = restrictions or default_filter
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.google_places_timeout,
                transport=self._transport,
            )
        return self._client

    def _api_key(self) -> str:
        if not self.settings.google_maps_api_key:
            raise ConfigurationError("GOOGLE_MAPS_API_KEY is not configured")
        return self.settings.google_maps_api_key

    async def _send(self, description: str, method: str, url: str, **kwargs) -> dict:
        client = await self._get_client()
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Google Places {description} timed out: {e}")
            raise UpstreamTimeout(f"Timed out fetching {description}")
        except httpx.RequestError as e:
            logger.error(f"Google Places {description} request failed: {e}")
            raise UpstreamError(f"Failed to fetch {description}", status_code=502)

        if resp.status_code >= 400:
            logger.error(f"Google Places {description} error {resp.status_code}: {resp.text[:500]}")
            raise UpstreamError(f"Failed to fetch {description}", status_code=resp.status_code)
        return resp.json()

    async def autocomplete(
        self,
        input_text: str,
        session_token: str | None = None,
        language: str | None = None,
    ) -> list[PlacePrediction]:
        """Predictions for ``input_text`` with restricted entries already removed."""
        text = (input_text or "").strip()
        if len(text) < MIN_INPUT_LENGTH:
            return []

        api_key = self._api_key()
        language = language or "en"
        lat, lng = self.settings.places_bias_lat, self.settings.places_bias_lng

        if self.use_legacy:
            params = {
                "input": text,
                "key": api_key,
                "language": language,
                "location": f"{lat},{lng}",
                "radius": str(LEGACY_BIAS_RADIUS_M),
            }
            if session_token:
                params["sessiontoken"] = session_token
            data = await self._send("autocomplete suggestions", "GET", LEGACY_AUTOCOMPLETE_URL, params=params)
            predictions = adapt_legacy_autocomplete(data)
        else:
            body = {
                "input": text,
                "locationBias": {
                    "circle": {
                        "center": {"latitude": lat, "longitude": lng},
                        "radius": NEW_BIAS_RADIUS_M,
                    },
                },
                "languageCode": language,
            }
            if session_token:
                body["sessionToken"] = session_token
            data = await self._send(
                "autocomplete suggestions", "POST", NEW_AUTOCOMPLETE_URL,
                json=body, headers={"X-Goog-Api-Key": api_key},
            )
            predictions = adapt_new_autocomplete(data)

        return [p for p in predictions if not self.restrictions.is_prediction_restricted(p)]

    async def details(
        self,
        place_id: str,
        session_token: str | None = None,
        language: str | None = None,
        fields: list[str] | None = None,
    ) -> PlaceDetails:
        api_key = self._api_key()

        if self.use_legacy:
            params = {"place_id": place_id, "key": api_key, "fields": LEGACY_DETAILS_FIELDS}
            if session_token:
                params["sessiontoken"] = session_token
            if language:
                params["language"] = language
            data = await self._send("place details", "GET", LEGACY_DETAILS_URL, params=params)
            if data.get("status") != "OK" or not data.get("result"):
                raise NotFound()
            return adapt_legacy_details(data["result"], place_id)

        headers = {
            "X-Goog-Api-Key": api_key,
            "X-Goog-FieldMask": ",".join(fields or DEFAULT_DETAILS_FIELDS),
        }
        if session_token:
            headers["X-Goog-Session-Token"] = session_token
        params = {"languageCode": language} if language else None
        data = await self._send(
            "place details", "GET", NEW_DETAILS_URL.format(place_id=quote(place_id, safe="")),
            params=params, headers=headers,
        )
        return adapt_new_details(data, place_id)

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        """ISO country code at the given point, or None."""
        params = {"latlng": f"{lat},{lng}", "key": self._api_key(), "result_type": "country"}
        data = await self._send("reverse geocode", "GET", GEOCODE_URL, params=params)
        if data.get("status") != "OK":
            return None
        for result in data.get("results") or []:
            for component in result.get("address_components") or []:
                if "country" in (component.get("types") or []) and component.get("short_name"):
                    return component["short_name"]
        return None

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None
