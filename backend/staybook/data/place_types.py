"""Google place types accepted for hotel-search autocomplete, and their ranking."""

ALLOWED_PRIMARY_TYPES: tuple[str, ...] = (
    "country",
    "locality",
    "administrative_area_level_1",
    "lodging",
    "airport",
    "train_station",
    "bus_station",
    "tourist_attraction",
    "museum",
    "park",
    "shopping_mall",
    "amusement_park",
)

# Lower number = shown first
TYPE_PRIORITY: dict[str, int] = {
    "country": 1,
    "locality": 2,
    "administrative_area_level_1": 3,
    "airport": 4,
    "lodging": 5,
    "tourist_attraction": 6,
    "museum": 7,
    "park": 8,
    "shopping_mall": 9,
    "train_station": 10,
    "bus_station": 11,
    "amusement_park": 12,
}

UNRANKED = 999

# Google type -> search place type used for routing
GOOGLE_TYPE_TO_PLACE_TYPE: dict[str, str] = {
    "lodging": "hotel",
    "hotel": "hotel",
    "locality": "city",
    "postal_town": "city",
    "administrative_area_level_1": "region",
    "administrative_area_level_2": "region",
    "country": "country",
    "airport": "airport",
    "tourist_attraction": "attraction",
    "museum": "attraction",
    "park": "attraction",
    "shopping_mall": "attraction",
    "amusement_park": "attraction",
    "train_station": "attraction",
    "bus_station": "attraction",
    "point_of_interest": "attraction",
}


def map_google_place_type(google_type: str | None) -> str | None:
    if not google_type:
        return None
    return GOOGLE_TYPE_TO_PLACE_TYPE.get(google_type)


def derive_primary_type(types: list[str]) -> str | None:
    """Best-ranked allowed type in ``types``, or None when nothing is allowed."""
    best_type = None
    best_priority = UNRANKED + 1
    for place_type in types:
        if place_type not in ALLOWED_PRIMARY_TYPES:
            continue
        priority = TYPE_PRIORITY.get(place_type, UNRANKED)
        if priority < best_priority:
            best_type = place_type
            best_priority = priority
    return best_type
