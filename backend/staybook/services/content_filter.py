"""Content filter: restricted place, country, area and text checks.

Every predicate treats missing data as not restricted. A block is always
reported to clients as a plain 404 "Place not available".
"""

import logging

from staybook.data.restrictions import DEFAULT_RESTRICTIONS, RestrictionSet

logger = logging.getLogger(__name__)


class ContentFilter:
    def __init__(self, restrictions: RestrictionSet = DEFAULT_RESTRICTIONS):
        self.restrictions = restrictions

    def is_country_restricted(self, country_code: str | None) -> bool:
        if not country_code or not country_code.strip():
            return False
        return country_code.strip().upper() in self.restrictions.country_codes

    def is_place_id_restricted(self, place_id: str | None) -> bool:
        if not place_id:
            return False
        return place_id in self.restrictions.place_ids

    def is_location_restricted(self, lat: float | None, lng: float | None) -> bool:
        if lat is None or lng is None:
            return False
        return any(box.contains(lat, lng) for box in self.restrictions.bounding_boxes.values())

    def is_text_restricted(self, text: str | None) -> bool:
        if not text or not text.strip():
            return False
        return any(pattern.search(text) for pattern in self.restrictions.text_patterns)

    def should_filter_place(self, place_id: str | None = None, country_code: str | None = None) -> bool:
        return self.is_place_id_restricted(place_id) or self.is_country_restricted(country_code)

    def is_prediction_restricted(self, prediction) -> bool:
        """Autocomplete predictions carry no address components, so check id and display text."""
        text = prediction.description or ", ".join(
            part for part in (prediction.main_text, prediction.secondary_text) if part
        )
        if self.should_filter_place(place_id=prediction.place_id) or self.is_text_restricted(text):
            logger.info(f"[Content Filter] Blocked autocomplete prediction: {text or prediction.place_id}")
            return True
        return False


content_filter = ContentFilter()
