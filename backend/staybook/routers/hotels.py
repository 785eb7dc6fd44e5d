"""Hotel details router: single hotel and batch enrichment for result cards."""

from fastapi import APIRouter, Depends, Query

from staybook.dependencies import get_api_key, get_liteapi, get_orchestrator
from staybook.errors import ValidationError
from staybook.schemas.rates import HotelDetailsBatchRequest
from staybook.services.liteapi_client import LiteApiClient
from staybook.services.rates_search import RateSearchOrchestrator

router = APIRouter()


@router.get("/details")
async def hotel_details(
    hotel_id: str | None = Query(None, alias="hotelId"),
    language: str | None = Query(None),
    liteapi: LiteApiClient = Depends(get_liteapi),
    api_key: str = Depends(get_api_key),
):
    if not hotel_id:
        raise ValidationError("hotelId is required")
    return await liteapi.get_hotel_details(hotel_id, language, api_key)


@router.post("/details/batch")
async def hotel_details_batch(
    req: HotelDetailsBatchRequest,
    orchestrator: RateSearchOrchestrator = Depends(get_orchestrator),
    api_key: str = Depends(get_api_key),
):
    """Rating, reviews, stars and map location for up to 80 hotels."""
    return await orchestrator.hotel_details_batch(req.hotel_ids, req.language, api_key)
