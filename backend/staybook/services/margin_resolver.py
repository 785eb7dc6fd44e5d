"""Margin resolution: user profile -> pricing segment -> margin sent to LiteAPI.

Segment priority: b2b account, staff email domain, user type with loyalty
level, then the default member segment. Guests (b2c) always get the provider's
base price.
"""

import logging
from dataclasses import dataclass

from staybook.schemas.auth import UserProfile
from staybook.services.channel_keys import Channel
from staybook.services.segment_store import DEFAULT_SEGMENT_ID, SegmentRow, SegmentStore

logger = logging.getLogger(__name__)

LOYALTY_SEGMENTS = {
    "voyager": "member_voyager",
    "adventurer": "member_adventurer",
    "explorer": "member_explorer",
}


@dataclass(frozen=True)
class MarginResult:
    margin: float | None = None
    additional_markup: float | None = None
    display_discount_percent: float | None = None

    @classmethod
    def from_segment(cls, segment: SegmentRow) -> "MarginResult":
        discount = segment.display_discount_percent
        return cls(
            margin=segment.effective_margin,
            additional_markup=segment.additional_markup,
            # 0 or negative means no promo badge
            display_discount_percent=discount if discount is not None and discount > 0 else None,
        )

    @property
    def is_empty(self) -> bool:
        return self.margin is None and self.additional_markup is None and self.display_discount_percent is None

    def to_dict(self) -> dict:
        return {key: value for key, value in self.__dict__.items() if value is not None}

    def promo_config(self, channel: Channel) -> dict:
        return {
            "is_cug": channel == Channel.CUG,
            "display_discount_percent": self.display_discount_percent,
        }


EMPTY_MARGIN = MarginResult()


def resolve_segment_id(profile: UserProfile, staff_domain: str) -> str:
    if profile.account_id:
        return "b2b"

    if profile.email:
        domain = profile.email.lower().partition("@")[2]
        if domain and domain == staff_domain.lower():
            return "employee"

    if profile.user_type == "employee":
        return "employee"
    if profile.user_type == "b2b":
        return "b2b"
    if profile.user_type == "member":
        return LOYALTY_SEGMENTS.get(profile.loyalty_level, DEFAULT_SEGMENT_ID)

    return DEFAULT_SEGMENT_ID


class MarginResolver:
    def __init__(self, store: SegmentStore, staff_domain: str):
        self.store = store
        self.staff_domain = staff_domain

    def resolve(self, profile: UserProfile | None, channel: Channel) -> MarginResult:
        if channel == Channel.B2C or profile is None:
            return EMPTY_MARGIN

        segment_id = resolve_segment_id(profile, self.staff_domain)
        segment = self.store.resolve(segment_id)
        logger.debug(f"Resolved segment {segment.id} for user {profile.user_id}")
        return MarginResult.from_segment(segment)
