"""Prebook and book through LiteAPI, plus the payment widget handoff."""

import logging

from staybook.config import Settings
from staybook.errors import ValidationError
from staybook.schemas.booking import BookRequest, PrebookRequest
from staybook.services.liteapi_client import LiteApiClient

logger = logging.getLogger(__name__)


def payment_handoff(prebook: dict, settings: Settings) -> dict:
    """Values the payment widget needs, taken from a prebook response."""
    data = prebook.get("data") or {}
    return {
        "publishable_key": settings.liteapi_payment_publishable_key or None,
        "secret_key": data.get("secretKey"),
        "prebook_id": data.get("prebookId"),
        "transaction_id": data.get("transactionId"),
        "return_url": settings.payment_return_url,
    }


class BookingService:
    def __init__(self, liteapi: LiteApiClient, settings: Settings):
        self.liteapi = liteapi
        self.settings = settings

    async def prebook(self, req: PrebookRequest, api_key: str) -> dict:
        if not req.offer_id:
            raise ValidationError("offerId is required")
        resp = await self.liteapi.prebook(req.offer_id, req.use_payment_sdk, api_key)
        handoff = payment_handoff(resp, self.settings)
        logger.info(f"Prebooked offer {req.offer_id} -> {handoff['prebook_id']}")
        return {**resp, "payment": handoff}

    async def book(self, req: BookRequest, api_key: str) -> dict:
        if not req.prebook_id or not req.holder or not req.payment or not req.payment.transaction_id:
            raise ValidationError("prebookId, holder and payment.transactionId are required for booking")
        resp = await self.liteapi.book(req.to_provider_body(), api_key)
        logger.info(f"Booked prebook {req.prebook_id}")
        return resp
