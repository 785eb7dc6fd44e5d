"""Room occupancy: adults plus child ages per room.

URL form is ``adults[,age,...]`` per room joined by ``|``, e.g. ``"2,5,2|1"``.
"""

from dataclasses import dataclass, field

MIN_ROOMS = 1
MAX_ROOMS = 5
MIN_ADULTS_PER_ROOM = 1
MAX_ADULTS_PER_ROOM = 6
MAX_CHILDREN_PER_ROOM = 4
CHILD_AGE_MIN = 0
CHILD_AGE_MAX = 17
UNSET_CHILD_AGE = -1


@dataclass
class Occupancy:
    adults: int = 2
    children: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"adults": self.adults, "children": list(self.children)}


def default_occupancies() -> list[Occupancy]:
    return [Occupancy(adults=2, children=[])]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def is_valid_child_age(age) -> bool:
    return isinstance(age, int) and not isinstance(age, bool) and CHILD_AGE_MIN <= age <= CHILD_AGE_MAX


def _parse_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_occupancies(value: str | None) -> list[Occupancy]:
    """Parse the URL form. Empty or unparsable input gives one room with two adults."""
    if not value or not value.strip():
        return default_occupancies()

    occupancies = []
    for part in value.split("|"):
        if not part:
            continue
        numbers = [n for n in (_parse_int(s) for s in part.split(",")) if n is not None]
        if not numbers:
            continue
        adults = _clamp(numbers[0], MIN_ADULTS_PER_ROOM, MAX_ADULTS_PER_ROOM)
        children = [_clamp(age, CHILD_AGE_MIN, CHILD_AGE_MAX) for age in numbers[1:]]
        occupancies.append(Occupancy(adults=adults, children=children[:MAX_CHILDREN_PER_ROOM]))

    if not occupancies:
        return default_occupancies()
    return occupancies[:MAX_ROOMS]


def serialize_occupancies(occupancies: list[Occupancy]) -> str:
    """Inverse of parse_occupancies. Unset ages are left out."""
    rooms = []
    for occupancy in occupancies[:MAX_ROOMS]:
        parts = [str(occupancy.adults)]
        parts.extend(str(age) for age in occupancy.children if is_valid_child_age(age))
        rooms.append(",".join(parts))
    return "|".join(rooms)


def has_unset_child_ages(occupancies: list[Occupancy]) -> bool:
    return any(not is_valid_child_age(age) for o in occupancies for age in o.children)


def total_adults(occupancies: list[Occupancy]) -> int:
    return sum(o.adults for o in occupancies)


def total_children(occupancies: list[Occupancy]) -> int:
    return sum(len(o.children) for o in occupancies)


def total_guests(occupancies: list[Occupancy]) -> int:
    return total_adults(occupancies) + total_children(occupancies)


def to_api_occupancies(occupancies: list[Occupancy]) -> list[dict]:
    rooms = []
    for occupancy in occupancies:
        room = {"adults": occupancy.adults}
        ages = [age for age in occupancy.children if is_valid_child_age(age)]
        if ages:
            room["children"] = ages
        rooms.append(room)
    return rooms
