"""Curated cities shown for country-level searches.

Restricted countries must never be listed here; the getter re-checks anyway.
"""

from dataclasses import dataclass

from staybook.services.content_filter import content_filter


@dataclass(frozen=True)
class TopCity:
    name: str
    place_id: str | None = None
    popularity: int | None = None

    def to_dict(self) -> dict:
        return {"name": self.name, "place_id": self.place_id, "popularity": self.popularity}


TOP_CITIES: dict[str, list[TopCity]] = {
    "EG": [
        TopCity("Cairo", "ChIJizKuijrlXhURq4X1S9OGLpY"),
        TopCity("Sharm El Sheikh", "ChIJzV6FCfWtXhQR8J0O2_kHuC0"),
        TopCity("Hurghada", "ChIJs7s9zbKHUhQRYMPTi_kHuC0"),
        TopCity("Alexandria", "ChIJ7a_R3kBhUhQRPPKjKSKOXAw"),
        TopCity("Luxor", "ChIJa1DpLfXiXhQRF0kHuC0"),
    ],
    "SA": [
        TopCity("Makkah", "ChIJdYeB7UwbwhURzslwz2kkq5g"),
        TopCity("Riyadh", "ChIJXRHm28VNXz4RBB0F0G6jrB4"),
        TopCity("Jeddah", "ChIJ0RaWS3A7whURzbVU2hKOXAw"),
        TopCity("Madinah", "ChIJ-78KmFH9wBURCpxVB_kHuC0"),
    ],
    "MA": [
        TopCity("Marrakech", "ChIJsaKOUCy4pw0R0F0F0G6jrB4"),
        TopCity("Casablanca", "ChIJ0RaS3A7whURzbVU2hKOXAw"),
        TopCity("Rabat", "ChIJ2Z1F0G6jrB4R0F0F0G6jrB4"),
        TopCity("Fes", "ChIJ3bU2hKOXAw0R0F0F0G6jrB4"),
    ],
    "TR": [
        TopCity("Istanbul", "ChIJJwx2F0G_yhQR0F0F0G6jrB4"),
        TopCity("Antalya", "ChIJWxV6F0G_yhQR0F0F0G6jrB4"),
        TopCity("Cappadocia", "ChIJRdF0G_yhQR0F0F0G6jrB4"),
        TopCity("Bodrum", "ChIJYhQR0F0F0G6jrB4"),
    ],
    "AE": [
        TopCity("Dubai", "ChIJRYkMpMY5Xz4RhKOXAw"),
        TopCity("Abu Dhabi", "ChIJXz4RhKOXAw0R0F0F0G6jrB4"),
        TopCity("Sharjah", "ChIJOXAw0R0F0F0G6jrB4"),
    ],
    "JO": [
        TopCity("Amman", "ChIJF0G6jrB4R0F0F0G6jrB4"),
        TopCity("Petra", "ChIJ6jrB4R0F0F0G6jrB4"),
        TopCity("Aqaba", "ChIJB4R0F0F0G6jrB4"),
    ],
}


def get_top_cities_for_country(country_code: str | None) -> list[TopCity]:
    if not country_code or content_filter.is_country_restricted(country_code):
        return []
    return list(TOP_CITIES.get(country_code.strip().upper(), []))
