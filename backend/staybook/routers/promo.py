from fastapi import APIRouter

from staybook.schemas.booking import PromoValidateRequest, PromoValidateResponse
from staybook.services.promo_service import validate_promo_code

router = APIRouter()


@router.post("/validate", response_model=PromoValidateResponse)
async def validate(req: PromoValidateRequest):
    return validate_promo_code(req.code)
