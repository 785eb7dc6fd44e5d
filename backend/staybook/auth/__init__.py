"""Identity handling: signed cookie codec and profile helpers."""

from staybook.auth.identity import (
    IdentityCookie,
    build_user_profile,
    clear_identity_cookie,
    decode_identity,
    derive_user_type_from_email,
    encode_identity,
    identity_from_cookies,
    is_expired,
    loyalty_level_from_bookings,
    new_session,
)

__all__ = [
    "IdentityCookie",
    "build_user_profile",
    "clear_identity_cookie",
    "decode_identity",
    "derive_user_type_from_email",
    "encode_identity",
    "identity_from_cookies",
    "is_expired",
    "loyalty_level_from_bookings",
    "new_session",
]
