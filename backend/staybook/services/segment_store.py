"""Pricing segments.

Segments live in a static table until a segments table exists in a database.
Anything that can ``resolve(key)`` to a SegmentRow can replace it.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SegmentRow:
    id: str
    name: str
    effective_margin: float | None
    additional_markup: float | None
    display_discount_percent: float | None
    is_cug: bool


class SegmentStore(Protocol):
    def resolve(self, key: str) -> SegmentRow: ...


DEFAULT_SEGMENT_ID = "member_explorer"

# Loyalty-based member margins: explorer 7%, adventurer 5%, voyager 3%
PLACEHOLDER_SEGMENTS: dict[str, SegmentRow] = {
    "employee": SegmentRow(
        id="employee",
        name="Employee",
        effective_margin=5,
        additional_markup=None,
        display_discount_percent=10,
        is_cug=True,
    ),
    "member_explorer": SegmentRow(
        id="member_explorer",
        name="Member (Explorer)",
        effective_margin=7,
        additional_markup=None,
        display_discount_percent=0,
        is_cug=True,
    ),
    "member_adventurer": SegmentRow(
        id="member_adventurer",
        name="Member (Adventurer)",
        effective_margin=5,
        additional_markup=None,
        display_discount_percent=0,
        is_cug=True,
    ),
    "member_voyager": SegmentRow(
        id="member_voyager",
        name="Member (Voyager)",
        effective_margin=3,
        additional_markup=None,
        display_discount_percent=0,
        is_cug=True,
    ),
    "b2b": SegmentRow(
        id="b2b",
        name="B2B",
        effective_margin=0,
        additional_markup=None,
        display_discount_percent=None,
        is_cug=True,
    ),
}


class StaticSegmentStore:
    def __init__(self, rows: dict[str, SegmentRow] | None = None, default_id: str = DEFAULT_SEGMENT_ID):
        self._rows = dict(rows if rows is not None else PLACEHOLDER_SEGMENTS)
        self._default_id = default_id

    def resolve(self, key: str) -> SegmentRow:
        row = self._rows.get(key)
        if row is None:
            return self._rows[self._default_id]
        return row
