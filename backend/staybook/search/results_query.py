"""Canonical results-page search state, carried in the URL query string.

The URL is the only copy: both the server and its clients parse it and
serialize back to it. Query keys keep the URL's camelCase names.
"""

import json
import math
from dataclasses import dataclass, fields
from typing import Mapping
from urllib.parse import urlencode

from staybook.search.occupancy import Occupancy, default_occupancies, parse_occupancies, serialize_occupancies

DEFAULT_NATIONALITY = "EG"
DEFAULT_SORT = "recommended"
SORT_OPTIONS = ("recommended", "price_asc", "price_desc", "rating_desc")


@dataclass
class ResultsQueryParams:
    mode: str = "place"
    place_id: str | None = None
    place_name: str | None = None
    place_address: str | None = None
    place_types: list[str] | None = None
    place_type: str | None = None
    ai_search: str | None = None
    checkin: str = ""
    checkout: str = ""
    occupancies: str = "2"
    nationality: str = DEFAULT_NATIONALITY
    sort: str = DEFAULT_SORT
    # display filters
    refundable_only: bool = False
    min_price: float | None = None
    max_price: float | None = None
    name: str | None = None
    stars: list[int] | None = None
    min_rating: float | None = None
    min_reviews_count: int | None = None
    facilities: list[int] | None = None
    # search area
    latitude: float | None = None
    longitude: float | None = None
    radius: int | None = None
    country_code: str | None = None

    def __post_init__(self):
        if self.place_types is None:
            self.place_types = []

    @property
    def occupancy_list(self) -> list[Occupancy]:
        return parse_occupancies(self.occupancies)


def _text(params: Mapping[str, str], key: str) -> str | None:
    value = params.get(key)
    return value if value else None


def _number(params: Mapping[str, str], key: str, cast=float):
    value = params.get(key)
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if cast is int else cast(number)


def _number_list(value: str | None) -> list[int] | None:
    if not value:
        return None
    numbers = []
    for part in value.split(","):
        try:
            numbers.append(int(part.strip()))
        except ValueError:
            continue
    return numbers


def _string_list(value: str | None) -> list[str]:
    if not value or not value.strip():
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_results_query(params: Mapping[str, str]) -> ResultsQueryParams:
    occupancies = params.get("occupancies")
    legacy_adults = params.get("adults")
    if not occupancies:
        if legacy_adults and legacy_adults.isdigit() and int(legacy_adults) >= 1:
            occupancies = legacy_adults
        else:
            occupancies = serialize_occupancies(default_occupancies())

    sort = params.get("sort") or DEFAULT_SORT
    ai_search = params.get("aiSearch")

    return ResultsQueryParams(
        mode=params.get("mode") or "place",
        place_id=_text(params, "placeId"),
        place_name=_text(params, "placeName"),
        place_address=_text(params, "placeAddress"),
        place_types=_string_list(params.get("placeTypes")),
        place_type=_text(params, "placeType"),
        ai_search=ai_search.strip() or None if ai_search else None,
        checkin=params.get("checkin") or "",
        checkout=params.get("checkout") or "",
        occupancies=occupancies,
        nationality=params.get("nationality") or DEFAULT_NATIONALITY,
        sort=sort if sort in SORT_OPTIONS else DEFAULT_SORT,
        refundable_only=params.get("refundableOnly") == "1",
        min_price=_number(params, "minPrice"),
        max_price=_number(params, "maxPrice"),
        name=_text(params, "name"),
        stars=_number_list(params.get("stars")),
        min_rating=_number(params, "minRating"),
        min_reviews_count=_number(params, "minReviewsCount", int),
        facilities=_number_list(params.get("facilities")),
        latitude=_number(params, "latitude"),
        longitude=_number(params, "longitude"),
        radius=_number(params, "radius", int),
        country_code=_text(params, "countryCode"),
    )


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def serialize_results_query(params: ResultsQueryParams) -> dict[str, str]:
    """Ordered query dict. Unset optional fields are left out."""
    query: dict[str, str] = {"mode": params.mode}
    if params.place_id:
        query["placeId"] = params.place_id
    if params.place_name:
        query["placeName"] = params.place_name
    if params.place_address:
        query["placeAddress"] = params.place_address
    if params.place_types:
        query["placeTypes"] = ",".join(params.place_types)
    if params.place_type:
        query["placeType"] = params.place_type
    if params.ai_search:
        query["aiSearch"] = params.ai_search
    query["checkin"] = params.checkin
    query["checkout"] = params.checkout
    query["occupancies"] = params.occupancies
    query["nationality"] = params.nationality
    if params.sort and params.sort != DEFAULT_SORT:
        query["sort"] = params.sort

    if params.refundable_only:
        query["refundableOnly"] = "1"
    if params.min_price is not None:
        query["minPrice"] = _format_number(params.min_price)
    if params.max_price is not None:
        query["maxPrice"] = _format_number(params.max_price)
    if params.name:
        query["name"] = params.name
    if params.stars:
        query["stars"] = ",".join(str(s) for s in params.stars)
    if params.min_rating is not None:
        query["minRating"] = _format_number(params.min_rating)
    if params.min_reviews_count is not None:
        query["minReviewsCount"] = str(params.min_reviews_count)
    if params.facilities:
        query["facilities"] = ",".join(str(f) for f in params.facilities)

    if params.latitude is not None:
        query["latitude"] = repr(float(params.latitude))
    if params.longitude is not None:
        query["longitude"] = repr(float(params.longitude))
    if params.radius is not None:
        query["radius"] = str(params.radius)
    if params.country_code:
        query["countryCode"] = params.country_code
    return query


def results_url(params: ResultsQueryParams) -> str:
    return f"/results?{urlencode(serialize_results_query(params))}"


def build_results_query(occupancies: list[Occupancy], **options) -> ResultsQueryParams:
    """Build params from form state, serializing occupancies the way the URL carries them."""
    known = {f.name for f in fields(ResultsQueryParams)}
    unknown = set(options) - known
    if unknown:
        raise TypeError(f"Unknown results query options: {', '.join(sorted(unknown))}")
    return ResultsQueryParams(occupancies=serialize_occupancies(occupancies), **options)


def background_search_signature(params: ResultsQueryParams) -> str:
    """Stable key over the params that change results. Sort and display filters are excluded."""
    return json.dumps({
        "mode": params.mode,
        "place_id": params.place_id or "",
        "place_name": params.place_name or "",
        "place_address": params.place_address or "",
        "place_types": sorted(params.place_types or []),
        "place_type": params.place_type or "",
        "ai_search": params.ai_search or "",
        "checkin": params.checkin,
        "checkout": params.checkout,
        "occupancies": params.occupancies,
        "latitude": params.latitude,
        "longitude": params.longitude,
        "radius": params.radius,
        "country_code": params.country_code or "",
    }, sort_keys=True)
