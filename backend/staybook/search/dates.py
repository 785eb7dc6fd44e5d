from datetime import date


def parse_yyyymmdd(value: str | None) -> date | None:
    """Strict ``YYYY-MM-DD`` parse. Returns None for anything invalid, including Feb 30."""
    if not value or len(value) != 10 or value[4] != "-" or value[7] != "-":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def nights(checkin: str | None, checkout: str | None) -> int:
    start = parse_yyyymmdd(checkin)
    end = parse_yyyymmdd(checkout)
    if start is None or end is None:
        return 0
    return max(0, (end - start).days)
