"""Promo codes. Stub until a CRM backs it: SAVE10 is 10% off, FLAT20 is 20 EGP off."""

from staybook.schemas.booking import PromoValidateResponse

APPLIED = "Promo code applied!"

PROMO_CODES: dict[str, dict] = {
    "SAVE10": {"type": "percent", "value": 10},
    "FLAT20": {"type": "fixed", "value": 20, "currency": "EGP"},
}


def validate_promo_code(code: str | None) -> PromoValidateResponse:
    normalized = (code or "").strip().upper()
    if not normalized:
        return PromoValidateResponse(valid=False, message="Please enter a promo code.")

    promo = PROMO_CODES.get(normalized)
    if promo is None:
        return PromoValidateResponse(valid=False, message="Invalid or expired code")
    return PromoValidateResponse(valid=True, message=APPLIED, **promo)
