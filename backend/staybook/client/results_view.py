"""Turn a rates search payload into the hotel list the results page shows.

Display filters and sort run here on the already-fetched payload, so
changing them never triggers a new search.
"""

import unicodedata

from staybook.search.geo import distance_meters
from staybook.search.results_query import ResultsQueryParams
from staybook.services.content_filter import ContentFilter, content_filter


def normalize_for_search(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn").strip()


def _hotel_location(hotel: dict, details: dict) -> tuple[float, float] | None:
    location = details.get("location") or {}
    lat = location.get("latitude", hotel.get("latitude"))
    lng = location.get("longitude", hotel.get("longitude"))
    if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
        return float(lat), float(lng)
    return None


def build_hotel_cards(payload: dict) -> list[dict]:
    """One card per priced hotel, in offer order."""
    hotels_by_id = {hotel.get("id"): hotel for hotel in payload.get("hotels") or [] if hotel.get("id")}
    prices = payload.get("prices_by_hotel_id") or {}
    refundable = payload.get("has_refundable_rate_by_hotel_id") or {}
    details_by_id = payload.get("hotel_details_by_hotel_id") or {}

    cards = []
    seen = set()
    for offer in payload.get("offers") or []:
        hotel_id = offer.get("hotelId")
        if not hotel_id or hotel_id in seen or hotel_id not in prices:
            continue
        seen.add(hotel_id)
        hotel = hotels_by_id.get(hotel_id) or offer.get("hotel") or {}
        details = details_by_id.get(hotel_id) or {}
        cards.append({
            "hotel_id": hotel_id,
            "name": hotel.get("name") or "",
            "price": prices[hotel_id],
            "has_refundable_rate": bool(refundable.get(hotel_id)),
            "rating": details.get("rating"),
            "review_count": details.get("review_count"),
            "star_rating": details.get("star_rating"),
            "location": _hotel_location(hotel, details),
        })
    return cards


def _passes_filters(card: dict, params: ResultsQueryParams) -> bool:
    amount = card["price"]["amount"]
    if params.refundable_only and not card["has_refundable_rate"]:
        return False
    if params.min_price is not None and amount < params.min_price:
        return False
    if params.max_price is not None and amount > params.max_price:
        return False
    if params.name and normalize_for_search(params.name) not in normalize_for_search(card["name"]):
        return False
    if params.stars:
        if card["star_rating"] is None or int(card["star_rating"]) not in params.stars:
            return False
    if params.min_rating is not None and (card["rating"] or 0) < params.min_rating:
        return False
    if params.min_reviews_count is not None and (card["review_count"] or 0) < params.min_reviews_count:
        return False
    return True


def _sort_cards(cards: list[dict], sort: str) -> list[dict]:
    if sort == "price_asc":
        return sorted(cards, key=lambda c: c["price"]["amount"])
    if sort == "price_desc":
        return sorted(cards, key=lambda c: c["price"]["amount"], reverse=True)
    if sort == "rating_desc":
        return sorted(cards, key=lambda c: (c["rating"] is None, -(c["rating"] or 0)))
    return cards


def visible_hotels(
    payload: dict,
    params: ResultsQueryParams,
    center: tuple[float, float] | None = None,
    restrictions: ContentFilter | None = None,
) -> list[dict]:
    restrictions = restrictions or content_filter
    cards = [
        card for card in build_hotel_cards(payload)
        if card["location"] is None or not restrictions.is_location_restricted(*card["location"])
    ]
    cards = [card for card in cards if _passes_filters(card, params)]

    if center is not None:
        for card in cards:
            if card["location"] is not None:
                card["distance_meters"] = distance_meters(center[0], center[1], *card["location"])
        if params.sort == "recommended":
            return sorted(cards, key=lambda c: (c.get("distance_meters") is None, c.get("distance_meters") or 0))
    return _sort_cards(cards, params.sort)
