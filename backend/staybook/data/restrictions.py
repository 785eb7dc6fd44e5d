"""Content restrictions: countries and places that never appear in search results.

Checked at several independent layers (autocomplete processing, the
autocomplete and place-details routes, the results view, the curated cities
table, and the rate-search guard). Each layer sees different data, so the
rules are applied at each one.
"""

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


@dataclass(frozen=True)
class RestrictionSet:
    country_codes: frozenset[str] = frozenset()
    place_ids: frozenset[str] = frozenset()
    bounding_boxes: dict[str, BoundingBox] = field(default_factory=dict)
    text_patterns: tuple[re.Pattern, ...] = ()


# ISO 3166-1 alpha-2
RESTRICTED_COUNTRY_CODES = frozenset({"IL"})

RESTRICTED_PLACE_IDS = frozenset({
    "ChIJi8mnMiRJABURuiw1EyBCa2o",  # Israel (country)
    "ChIJH3w7GaZMHRURkD-WwKJy-8E",  # Tel Aviv
    "ChIJkZGDg9VI1xQRMp_RiQvR2SQ",  # Jerusalem
    "ChIJZbCvRZwpHRURuFW0I3D1p5I",  # Haifa
})

# Coarse boxes, over-inclusive near borders
RESTRICTED_BOUNDS: dict[str, BoundingBox] = {
    "IL": BoundingBox(min_lat=29.5, max_lat=33.3, min_lng=34.3, max_lng=35.9),
}

# Whole word only, so "Israeli" elsewhere is not blocked
RESTRICTED_TEXT_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\bIsrael\b", re.IGNORECASE),
    re.compile(r"\bإسرائيل\b"),
    re.compile(r"\bישראל\b"),
)

DEFAULT_RESTRICTIONS = RestrictionSet(
    country_codes=RESTRICTED_COUNTRY_CODES,
    place_ids=RESTRICTED_PLACE_IDS,
    bounding_boxes=RESTRICTED_BOUNDS,
    text_patterns=RESTRICTED_TEXT_PATTERNS,
)
