from typing import Any

from pydantic import BaseModel, Field


class OccupancyIn(BaseModel):
    adults: int | None = None
    children: list[Any] = []


class RatesSearchRequest(BaseModel):
    mode: str | None = None
    place_id: str | None = None
    ai_search: str | None = None
    checkin: str | None = None
    checkout: str | None = None
    occupancies: list[OccupancyIn] | None = None
    adults: int | None = None  # legacy single-room form
    currency: str | None = None
    guest_nationality: str | None = None
    language: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius: float | None = None
    country_code: str | None = None
    timeout: float | None = None
    star_rating: list[int] | None = None
    min_rating: float | None = None
    min_reviews_count: int | None = None
    facilities: list[int] | None = None
    strict_facility_filtering: bool | None = None


class HotelRatesRequest(BaseModel):
    hotel_id: str | None = None
    checkin: str | None = None
    checkout: str | None = None
    occupancies: list[OccupancyIn] | None = None
    adults: int | None = None
    currency: str | None = None
    guest_nationality: str | None = None
    language: str | None = None


class HotelDetailsBatchRequest(BaseModel):
    hotel_ids: list[Any] = Field(default_factory=list)
    language: str | None = None


class PriceSummary(BaseModel):
    amount: float
    currency: str
    refundable_tag: str | None = None
    tax_included: bool = False


class HotelSummary(BaseModel):
    rating: float | None = None
    review_count: int | None = None
    star_rating: float | None = None
    location: dict | None = None


class PromoConfigOut(BaseModel):
    is_cug: bool
    display_discount_percent: float | None = None


class RatesSearchResponse(BaseModel):
    mode: str
    offers: list[dict] = []
    hotels: list[dict] = []
    prices_by_hotel_id: dict[str, PriceSummary] = {}
    has_refundable_rate_by_hotel_id: dict[str, bool] = {}
    hotel_details_by_hotel_id: dict[str, HotelSummary] = {}
    promo_config: PromoConfigOut
