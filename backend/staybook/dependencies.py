"""FastAPI dependencies: who is calling, which channel, and the process-wide services."""

from fastapi import Depends, Request

from staybook.auth.identity import identity_from_cookies
from staybook.config import Settings
from staybook.schemas.auth import Identity
from staybook.services.booking import BookingService
from staybook.services.channel_keys import ApiKeySelector, Channel, channel_from_identity
from staybook.services.liteapi_client import LiteApiClient
from staybook.services.margin_resolver import MarginResolver, MarginResult
from staybook.services.places_client import PlacesClient
from staybook.services.rates_search import RateSearchOrchestrator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity(request: Request, settings: Settings = Depends(get_settings)) -> Identity | None:
    return identity_from_cookies(request.cookies, settings)


def get_channel(identity: Identity | None = Depends(get_identity)) -> Channel:
    return channel_from_identity(identity)


def get_margin(
    request: Request,
    identity: Identity | None = Depends(get_identity),
    channel: Channel = Depends(get_channel),
) -> MarginResult:
    resolver: MarginResolver = request.app.state.margin_resolver
    return resolver.resolve(identity.profile if identity else None, channel)


def get_key_selector(request: Request) -> ApiKeySelector:
    return request.app.state.key_selector


def get_api_key(
    channel: Channel = Depends(get_channel),
    selector: ApiKeySelector = Depends(get_key_selector),
) -> str:
    return selector.key_for(channel)


def get_liteapi(request: Request) -> LiteApiClient:
    return request.app.state.liteapi


def get_places_client(request: Request) -> PlacesClient:
    return request.app.state.places


def get_orchestrator(request: Request) -> RateSearchOrchestrator:
    return request.app.state.orchestrator


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking
