DEFAULT_RATES_SEARCH_TIMEOUT = 5
MIN_RATES_SEARCH_TIMEOUT = 1
MAX_RATES_SEARCH_TIMEOUT = 30


def clamp_rates_timeout(
    value,
    default: int = DEFAULT_RATES_SEARCH_TIMEOUT,
    low: int = MIN_RATES_SEARCH_TIMEOUT,
    high: int = MAX_RATES_SEARCH_TIMEOUT,
) -> int:
    """Upstream search timeout in whole seconds, clamped; default when missing or not a number."""
    if value is None or isinstance(value, bool):
        return default
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return default
    if seconds != seconds or seconds in (float("inf"), float("-inf")):
        return default
    return int(min(high, max(low, round(seconds))))
