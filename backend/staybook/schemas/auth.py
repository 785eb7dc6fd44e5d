from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr

UserType = Literal["member", "employee", "b2b"]
LoyaltyLevel = Literal["explorer", "adventurer", "voyager"]


class Session(BaseModel):
    session_id: str
    created_at: datetime
    expires_at: datetime


class UserProfile(BaseModel):
    user_id: str
    email: str | None = None
    display_name: str | None = None
    phone: str | None = None
    user_type: UserType = "member"
    loyalty_level: LoyaltyLevel = "explorer"
    bookings_count: int | None = None
    account_id: str | None = None

    model_config = {"frozen": True}


class Identity(BaseModel):
    session: Session
    profile: UserProfile


class LoginRequest(BaseModel):
    email: EmailStr
    password: str | None = None
    display_name: str | None = None
    phone: str | None = None
    user_type: str | None = None
    loyalty_level: str | None = None
    bookings_count: int | None = None
    account_id: str | None = None


class PromoConfig(BaseModel):
    is_cug: bool = False
    display_discount_percent: float | None = None


class SessionResponse(BaseModel):
    identity: Identity | None = None
    promo_config: PromoConfig


class LoginResponse(BaseModel):
    ok: bool = True
    profile: UserProfile
