"""Place search router: Google autocomplete and details, reverse geocode, LiteAPI places."""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from staybook.dependencies import get_api_key, get_liteapi, get_places_client
from staybook.errors import NotFound, ValidationError
from staybook.search.routing import determine_search_route
from staybook.services.content_filter import content_filter
from staybook.services.liteapi_client import LiteApiClient
from staybook.services.places_client import MIN_INPUT_LENGTH, PlacesClient
from staybook.services.predictions import process_predictions

logger = logging.getLogger(__name__)

router = APIRouter()


class AutocompleteRequest(BaseModel):
    input: str | None = None
    session_token: str | None = None
    language_code: str | None = None


class PlaceDetailsRequest(BaseModel):
    place_id: str | None = None
    session_token: str | None = None
    language_code: str | None = None
    fields: list[str] | None = None


@router.post("/google-places/autocomplete")
async def autocomplete(req: AutocompleteRequest, places: PlacesClient = Depends(get_places_client)):
    predictions = await places.autocomplete(req.input or "", req.session_token, req.language_code)
    ranked = process_predictions(predictions)
    return {"suggestions": [prediction.to_dict() for prediction in ranked]}


@router.post("/google-places/details")
async def place_details(req: PlaceDetailsRequest, places: PlacesClient = Depends(get_places_client)):
    if not req.place_id:
        raise ValidationError("placeId is required")

    # pre-fetch gate
    if content_filter.is_place_id_restricted(req.place_id):
        logger.info(f"[Content Filter] Blocked place details request: {req.place_id}")
        raise NotFound()

    place = await places.details(req.place_id, req.session_token, req.language_code, req.fields)

    # post-fetch gate, details are the first layer that sees the country
    if content_filter.is_country_restricted(place.country_code) or content_filter.is_place_id_restricted(place.place_id):
        logger.info(
            f"[Content Filter] Blocked place details by country: {place.display_name or req.place_id} ({place.country_code})"
        )
        raise NotFound()

    route = determine_search_route(place.place_type, place.latitude, place.longitude, place.country_code)
    return {**place.to_dict(), "route": route.to_dict()}


def _parse_coordinate(value: str | None, limit: float) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if number != number or not -limit <= number <= limit:
        return None
    return number


@router.get("/geocode/reverse")
async def reverse_geocode(
    lat: str | None = Query(None),
    lng: str | None = Query(None),
    places: PlacesClient = Depends(get_places_client),
):
    """Country code at the map centre, for "search this area"."""
    lat_value = _parse_coordinate(lat, 90)
    lng_value = _parse_coordinate(lng, 180)
    if lat_value is None or lng_value is None:
        raise ValidationError("Valid lat and lng query parameters are required")
    return {"country_code": await places.reverse_geocode(lat_value, lng_value)}


def _is_restricted_provider_place(place: dict) -> bool:
    text = " ".join(str(place.get(key) or "") for key in ("displayName", "formattedAddress", "name"))
    return content_filter.should_filter_place(
        place_id=place.get("placeId"),
        country_code=place.get("countryCode") or place.get("country"),
    ) or content_filter.is_text_restricted(text)


@router.get("/places")
async def liteapi_places(
    q: str | None = Query(None),
    text_query: str | None = Query(None, alias="textQuery"),
    language: str | None = Query(None),
    liteapi: LiteApiClient = Depends(get_liteapi),
    api_key: str = Depends(get_api_key),
):
    query = (q or text_query or "").strip()
    if len(query) < MIN_INPUT_LENGTH:
        return {"data": []}

    resp = await liteapi.get_places(query, language, api_key)
    places = [place for place in resp.get("data") or [] if not _is_restricted_provider_place(place)]
    return {**resp, "data": places}
