from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = "development"

    # LiteAPI (rates provider), one key per channel
    liteapi_key_b2c: str = ""
    liteapi_key_cug: str = ""
    liteapi_base_url: str = "https://api.liteapi.travel/v3.0"
    liteapi_book_url: str = "https://book.liteapi.travel/v3.0"
    liteapi_timeout: float = 30.0

    # Payment widget handoff
    liteapi_payment_publishable_key: str = ""
    payment_return_url: str = "http://localhost:3000/confirmation"

    # Google Places (places provider)
    google_maps_api_key: str = ""
    use_legacy_google_places: bool = False
    google_places_timeout: float = 10.0
    places_bias_lat: float = 26.8206  # Egypt centre
    places_bias_lng: float = 30.8025

    # Auth cookie
    auth_cookie_secret: str = ""
    auth_cookie_name: str = "app_session"
    auth_algorithm: str = "HS256"
    auth_session_days: int = 7
    cookie_secure: bool = False

    # Segments
    staff_email_domain: str = "breadfast.com"

    # Redis
    redis_url: str = "redis://localhost:6379/0"
    rates_search_cache_ttl: int = 180
    hotel_details_cache_ttl: int = 24 * 60 * 60

    # Rate search
    rates_default_timeout: int = 5
    rates_min_timeout: int = 1
    rates_max_timeout: int = 30
    rates_search_limit: int = 1000
    default_currency: str = "USD"
    default_nationality: str = "EG"

    # Hotel details enrichment
    details_batch_max_ids: int = 80
    details_batch_concurrency: int = 15
    enrichment_max_hotels: int = 80

    # CORS
    cors_origins: str = "http://localhost:3000"

    @field_validator("liteapi_key_b2c", "liteapi_key_cug", "google_maps_api_key", mode="before")
    @classmethod
    def _strip_secret(cls, value):
        # strip whitespace and BOM from pasted values
        if isinstance(value, str):
            return value.replace("\ufeff", "").strip()
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8-sig", "extra": "ignore"}


settings = Settings()
