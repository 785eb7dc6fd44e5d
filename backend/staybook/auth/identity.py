"""Identity cookie codec: session and profile carried in a signed cookie.

There is no server-side session store: the cookie is the only place an
identity lives. The value is a JWT signed with ``auth_cookie_secret``; a
tampered profile fails verification and decodes to no identity.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Mapping

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from staybook.config import Settings, settings as default_settings
from staybook.errors import ConfigurationError
from staybook.schemas.auth import Identity, LoyaltyLevel, Session, UserProfile, UserType

logger = logging.getLogger(__name__)

DEV_SECRET = "dev-secret-min-16-chars"
MIN_SECRET_LENGTH = 16


@dataclass
class IdentityCookie:
    name: str
    value: str
    options: dict = field(default_factory=dict)


def _secret(cfg: Settings) -> str:
    secret = cfg.auth_cookie_secret or (DEV_SECRET if cfg.is_development else "")
    if len(secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"AUTH_COOKIE_SECRET must be set (min {MIN_SECRET_LENGTH} chars) for auth"
        )
    return secret


def cookie_options(cfg: Settings | None = None) -> dict:
    cfg = cfg or default_settings
    return {
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
        "max_age": cfg.auth_session_days * 24 * 60 * 60,
    }


def is_expired(identity: Identity, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    session = identity.session
    if session.expires_at <= session.created_at:
        return True
    return session.expires_at <= now


def encode_identity(identity: Identity, cfg: Settings | None = None) -> IdentityCookie:
    """Sign an identity into a cookie ready to be set on a response."""
    cfg = cfg or default_settings
    claims = identity.model_dump(mode="json")
    claims["exp"] = int(identity.session.expires_at.timestamp())
    token = jwt.encode(claims, _secret(cfg), algorithm=cfg.auth_algorithm)
    return IdentityCookie(name=cfg.auth_cookie_name, value=token, options=cookie_options(cfg))


def decode_identity(raw: str | None, cfg: Settings | None = None, now: datetime | None = None) -> Identity | None:
    """Decode a cookie value. Returns None for anything that is not a live, intact identity."""
    if not raw:
        return None
    cfg = cfg or default_settings
    try:
        claims = jwt.decode(raw, _secret(cfg), algorithms=[cfg.auth_algorithm])
    except ConfigurationError as e:
        logger.error(f"Identity cookie cannot be verified: {e.message}")
        return None
    except JWTError:
        return None

    claims.pop("exp", None)
    try:
        identity = Identity.model_validate(claims)
    except PydanticValidationError:
        return None

    if not identity.session.session_id or not identity.profile.user_id:
        return None
    if is_expired(identity, now):
        return None
    return identity


def identity_from_cookies(cookies: Mapping[str, str], cfg: Settings | None = None) -> Identity | None:
    cfg = cfg or default_settings
    return decode_identity(cookies.get(cfg.auth_cookie_name), cfg)


def clear_identity_cookie(cfg: Settings | None = None) -> IdentityCookie:
    cfg = cfg or default_settings
    return IdentityCookie(name=cfg.auth_cookie_name, value="", options={"path": "/", "max_age": 0})


def derive_user_type_from_email(email: str | None, staff_domain: str | None = None) -> UserType:
    """Placeholder until accounts live in a database: staff domain means employee."""
    staff_domain = (staff_domain or default_settings.staff_email_domain).lower()
    domain = (email or "").lower().rpartition("@")[2]
    return "employee" if domain and domain == staff_domain else "member"


def loyalty_level_from_bookings(bookings_count: int) -> LoyaltyLevel:
    # explorer 0-4, adventurer 5-9, voyager 10+
    if bookings_count >= 10:
        return "voyager"
    if bookings_count >= 5:
        return "adventurer"
    return "explorer"


def build_user_profile(
    user_id: str,
    email: str,
    display_name: str | None = None,
    phone: str | None = None,
    user_type: UserType | None = None,
    loyalty_level: LoyaltyLevel | None = None,
    bookings_count: int | None = None,
    account_id: str | None = None,
    staff_domain: str | None = None,
) -> UserProfile:
    if loyalty_level is None:
        loyalty_level = (
            loyalty_level_from_bookings(bookings_count) if bookings_count is not None else "explorer"
        )
    return UserProfile(
        user_id=user_id,
        email=email,
        display_name=display_name,
        phone=phone,
        user_type=user_type or derive_user_type_from_email(email, staff_domain),
        loyalty_level=loyalty_level,
        bookings_count=bookings_count,
        account_id=account_id,
    )


def standalone_user_id(email: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", email.lower())
    return f"standalone-{slug}-{uuid.uuid4().hex[:8]}"


def new_session(user_id: str, days: int | None = None, now: datetime | None = None) -> Session:
    now = now or datetime.now(timezone.utc)
    days = days or default_settings.auth_session_days
    return Session(
        session_id=f"sess-{user_id}-{uuid.uuid4().hex}",
        created_at=now,
        expires_at=now + timedelta(days=days),
    )
