"""Where a selected place leads: always the results list, with context per place type."""

from dataclasses import dataclass, field

from staybook.data.top_cities import TopCity, get_top_cities_for_country

DISTANCE_SORTED_TYPES = {"hotel", "airport", "attraction"}


@dataclass
class SearchRoute:
    destination: str = "results-list"
    enable_distance_sorting: bool = False
    center_lat: float | None = None
    center_lng: float | None = None
    top_cities: list[TopCity] = field(default_factory=list)

    def to_dict(self) -> dict:
        context: dict = {}
        if self.enable_distance_sorting:
            context.update({
                "enable_distance_sorting": True,
                "center_lat": self.center_lat,
                "center_lng": self.center_lng,
            })
        if self.top_cities:
            context["top_cities"] = [city.to_dict() for city in self.top_cities]
        return {"destination": self.destination, "context": context}


def determine_search_route(
    place_type: str | None,
    lat: float | None = None,
    lng: float | None = None,
    country_code: str | None = None,
) -> SearchRoute:
    # Hotels have no Google -> LiteAPI id mapping yet, so they land on a distance-sorted list
    if place_type in DISTANCE_SORTED_TYPES:
        return SearchRoute(enable_distance_sorting=True, center_lat=lat, center_lng=lng)
    if place_type == "country":
        return SearchRoute(top_cities=get_top_cities_for_country(country_code))
    return SearchRoute()
