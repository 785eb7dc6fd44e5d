from fastapi import APIRouter, Depends, Response

from staybook.auth.identity import (
    IdentityCookie,
    build_user_profile,
    clear_identity_cookie,
    encode_identity,
    new_session,
    standalone_user_id,
)
from staybook.config import Settings
from staybook.dependencies import get_channel, get_identity, get_margin, get_settings
from staybook.schemas.auth import Identity, LoginRequest, LoginResponse, PromoConfig, SessionResponse
from staybook.services.channel_keys import Channel
from staybook.services.margin_resolver import MarginResult

router = APIRouter()

USER_TYPES = ("member", "employee", "b2b")
LOYALTY_LEVELS = ("explorer", "adventurer", "voyager")


def _set_cookie(response: Response, cookie: IdentityCookie):
    response.set_cookie(cookie.name, cookie.value, **cookie.options)


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, response: Response, settings: Settings = Depends(get_settings)):
    """Standalone login: no password check or account store yet, any valid email gets a profile."""
    email = req.email.strip().lower()
    bookings_count = req.bookings_count if req.bookings_count is not None and req.bookings_count >= 0 else None

    user_id = standalone_user_id(email)
    profile = build_user_profile(
        user_id=user_id,
        email=email,
        display_name=req.display_name,
        phone=(req.phone or "").strip() or None,
        user_type=req.user_type if req.user_type in USER_TYPES else None,
        loyalty_level=req.loyalty_level if req.loyalty_level in LOYALTY_LEVELS else None,
        bookings_count=bookings_count,
        account_id=req.account_id or None,
        staff_domain=settings.staff_email_domain,
    )
    identity = Identity(session=new_session(user_id, days=settings.auth_session_days), profile=profile)

    _set_cookie(response, encode_identity(identity, settings))
    return LoginResponse(profile=profile)


@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    _set_cookie(response, clear_identity_cookie(settings))
    return {"ok": True}


@router.get("/session", response_model=SessionResponse)
async def session(
    identity: Identity | None = Depends(get_identity),
    channel: Channel = Depends(get_channel),
    margin: MarginResult = Depends(get_margin),
):
    """Current identity (or null) and the promo config the client uses for was/now prices."""
    if identity is None or channel == Channel.B2C:
        return SessionResponse(identity=None, promo_config=PromoConfig())
    return SessionResponse(identity=identity, promo_config=PromoConfig(**margin.promo_config(channel)))
