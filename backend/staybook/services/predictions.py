"""Filtering and ranking of autocomplete predictions for hotel search."""

from dataclasses import dataclass

from staybook.data.place_types import TYPE_PRIORITY, UNRANKED, derive_primary_type
from staybook.services.content_filter import ContentFilter, content_filter as default_filter
from staybook.services.places_adapter import PlacePrediction

# Primary market, matched against secondary text
EGYPT_KEYWORDS = ("egypt", "مصر")


@dataclass
class RankedPrediction:
    place_id: str
    description: str
    main_text: str
    secondary_text: str
    types: list[str]
    primary_type: str
    distance_meters: int | None = None

    def to_dict(self) -> dict:
        return {
            "place_id": self.place_id,
            "description": self.description,
            "main_text": self.main_text,
            "secondary_text": self.secondary_text,
            "types": self.types,
            "primary_type": self.primary_type,
            "distance_meters": self.distance_meters,
        }


def is_likely_egypt(prediction: PlacePrediction) -> bool:
    secondary = (prediction.secondary_text or "").lower()
    return any(keyword in secondary for keyword in EGYPT_KEYWORDS)


def process_predictions(
    predictions: list[PlacePrediction],
    max_results: int = 10,
    restrictions: ContentFilter | None = None,
) -> list[RankedPrediction]:
    """Drop restricted and irrelevant places, rank by type then Egypt first, truncate."""
    restrictions = restrictions or default_filter

    ranked: list[tuple[PlacePrediction, str]] = []
    for prediction in predictions:
        if restrictions.is_prediction_restricted(prediction):
            continue
        primary_type = derive_primary_type(prediction.types)
        if primary_type is not None:
            ranked.append((prediction, primary_type))

    # stable sort keeps provider order within ties
    ranked.sort(key=lambda item: (
        TYPE_PRIORITY.get(item[1], UNRANKED),
        0 if is_likely_egypt(item[0]) else 1,
    ))

    return [
        RankedPrediction(
            place_id=prediction.place_id,
            description=prediction.description,
            main_text=prediction.main_text,
            secondary_text=prediction.secondary_text,
            types=prediction.types,
            primary_type=primary_type,
            distance_meters=prediction.distance_meters,
        )
        for prediction, primary_type in ranked[:max_results]
    ]
