"""Adapters from both Google Places API generations to one internal shape.

Everything downstream (filtering, ranking, routing) works on PlacePrediction
and PlaceDetails only, never on raw provider fields.
"""

from dataclasses import dataclass, field

from staybook.data.place_types import map_google_place_type


@dataclass
class PlacePrediction:
    place_id: str
    description: str = ""
    main_text: str = ""
    secondary_text: str = ""
    types: list[str] = field(default_factory=list)
    distance_meters: int | None = None


@dataclass
class AddressComponent:
    long_text: str = ""
    short_text: str = ""
    types: list[str] = field(default_factory=list)


@dataclass
class PlaceDetails:
    place_id: str
    display_name: str = ""
    formatted_address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    address_components: list[AddressComponent] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    primary_type: str | None = None

    def _country_component(self) -> AddressComponent | None:
        for component in self.address_components:
            if "country" in component.types:
                return component
        return None

    @property
    def country_code(self) -> str | None:
        component = self._country_component()
        return (component.short_text or None) if component else None

    @property
    def country_name(self) -> str | None:
        component = self._country_component()
        return (component.long_text or None) if component else None

    @property
    def place_type(self) -> str | None:
        google_type = self.types[0] if self.types else self.primary_type
        return map_google_place_type(google_type)

    def to_dict(self) -> dict:
        return {
            "place_id": self.place_id,
            "display_name": self.display_name,
            "formatted_address": self.formatted_address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "types": self.types,
            "primary_type": self.primary_type,
            "type": self.place_type,
            "country_code": self.country_code,
            "country_name": self.country_name,
        }


def _text(value) -> str:
    # New API wraps strings as {"text": ...}
    if isinstance(value, dict):
        return value.get("text") or ""
    return value or ""


def adapt_new_autocomplete(payload: dict) -> list[PlacePrediction]:
    predictions = []
    for suggestion in payload.get("suggestions") or []:
        raw = suggestion.get("placePrediction")
        if not raw:
            continue
        structured = raw.get("structuredFormat") or {}
        place_id = raw.get("placeId") or (raw.get("place") or "").removeprefix("places/")
        predictions.append(PlacePrediction(
            place_id=place_id,
            description=_text(raw.get("text")),
            main_text=_text(structured.get("mainText")),
            secondary_text=_text(structured.get("secondaryText")),
            types=list(raw.get("types") or []),
            distance_meters=raw.get("distanceMeters"),
        ))
    return predictions


def adapt_legacy_autocomplete(payload: dict) -> list[PlacePrediction]:
    """Legacy responses carry a status; anything but OK means no predictions."""
    if payload.get("status") != "OK":
        return []
    predictions = []
    for raw in payload.get("predictions") or []:
        structured = raw.get("structured_formatting") or {}
        predictions.append(PlacePrediction(
            place_id=raw.get("place_id") or "",
            description=raw.get("description") or "",
            main_text=structured.get("main_text") or "",
            secondary_text=structured.get("secondary_text") or "",
            types=list(raw.get("types") or []),
            distance_meters=raw.get("distance_meters"),
        ))
    return predictions


def adapt_new_details(payload: dict, place_id: str | None = None) -> PlaceDetails:
    location = payload.get("location") or {}
    return PlaceDetails(
        place_id=payload.get("id") or payload.get("placeId") or place_id or "",
        display_name=_text(payload.get("displayName")),
        formatted_address=payload.get("formattedAddress") or "",
        latitude=location.get("latitude", location.get("lat")),
        longitude=location.get("longitude", location.get("lng")),
        address_components=[
            AddressComponent(
                long_text=c.get("longText") or c.get("long_name") or "",
                short_text=c.get("shortText") or c.get("short_name") or "",
                types=list(c.get("types") or []),
            )
            for c in payload.get("addressComponents") or []
        ],
        types=list(payload.get("types") or []),
        primary_type=payload.get("primaryType"),
    )


def adapt_legacy_details(result: dict, place_id: str | None = None) -> PlaceDetails:
    location = (result.get("geometry") or {}).get("location") or {}
    types = list(result.get("types") or [])
    return PlaceDetails(
        place_id=result.get("place_id") or place_id or "",
        display_name=result.get("name") or "",
        formatted_address=result.get("formatted_address") or "",
        latitude=location.get("lat"),
        longitude=location.get("lng"),
        address_components=[
            AddressComponent(
                long_text=c.get("long_name") or "",
                short_text=c.get("short_name") or "",
                types=list(c.get("types") or []),
            )
            for c in result.get("address_components") or []
        ],
        types=types,
        primary_type=types[0] if types else None,
    )
