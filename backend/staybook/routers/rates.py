"""Rates router: multi-hotel search, single-hotel rates, prebook and book.

Every response that carries prices reports the channel and margin used in
``X-Rate-*`` headers.
"""

import logging

from fastapi import APIRouter, Depends, Response

from staybook.config import Settings
from staybook.dependencies import (
    get_api_key,
    get_booking_service,
    get_channel,
    get_key_selector,
    get_margin,
    get_orchestrator,
    get_settings,
)
from staybook.schemas.booking import BookRequest, PrebookRequest
from staybook.schemas.rates import HotelRatesRequest, RatesSearchRequest, RatesSearchResponse
from staybook.services.booking import BookingService
from staybook.services.channel_keys import ApiKeySelector, Channel
from staybook.services.margin_resolver import MarginResult
from staybook.services.rates_search import RateSearchOrchestrator, build_hotel_rates_query, build_rates_query

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_rate_headers(response: Response, channel: Channel, margin: MarginResult):
    response.headers["X-Rate-Channel"] = channel.value
    response.headers["X-Rate-Margin"] = str(margin.margin) if margin.margin is not None else "none"
    if margin.additional_markup is not None:
        response.headers["X-Rate-AdditionalMarkup"] = str(margin.additional_markup)


@router.post("/search", response_model=RatesSearchResponse)
async def search_rates(
    req: RatesSearchRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    channel: Channel = Depends(get_channel),
    margin: MarginResult = Depends(get_margin),
    keys: ApiKeySelector = Depends(get_key_selector),
    orchestrator: RateSearchOrchestrator = Depends(get_orchestrator),
):
    query = build_rates_query(req, settings)
    api_key = keys.key_for(channel)

    result = await orchestrator.search_rates(query, api_key, margin, channel)
    _set_rate_headers(response, channel, margin)
    return result


@router.post("/hotel")
async def hotel_rates(
    req: HotelRatesRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    channel: Channel = Depends(get_channel),
    margin: MarginResult = Depends(get_margin),
    keys: ApiKeySelector = Depends(get_key_selector),
    orchestrator: RateSearchOrchestrator = Depends(get_orchestrator),
):
    query = build_hotel_rates_query(req, settings)
    api_key = keys.key_for(channel)

    result = await orchestrator.hotel_rates(query, api_key, margin, channel)
    _set_rate_headers(response, channel, margin)
    return result


@router.post("/prebook")
async def prebook(
    req: PrebookRequest,
    booking: BookingService = Depends(get_booking_service),
    api_key: str = Depends(get_api_key),
):
    return await booking.prebook(req, api_key)


@router.post("/book")
async def book(
    req: BookRequest,
    booking: BookingService = Depends(get_booking_service),
    api_key: str = Depends(get_api_key),
):
    return await booking.book(req, api_key)
