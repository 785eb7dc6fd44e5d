"""Friendly copy for search failures. Raw provider messages are never shown to users."""

from dataclasses import dataclass

TIMEOUT = "TIMEOUT"
NO_RATES = "NO_RATES"
NO_RESULTS = "NO_RESULTS"
INVALID_PARAMS = "INVALID_PARAMS"
SEARCH_FAILED = "SEARCH_FAILED"

MESSAGES = {
    TIMEOUT: "The search is taking longer than usual. Try again in a moment, or adjust your dates or destination.",
    NO_RATES: "We don't have availability for these dates in this area. Try changing your dates or looking at a nearby area.",
    NO_RESULTS: "No hotels found for this search. Try different dates or search a nearby area.",
    INVALID_PARAMS: "Something's missing in your search. Please check destination, dates, and guests and try again.",
    SEARCH_FAILED: "We couldn't load results right now. Please check your connection and try again.",
}


@dataclass(frozen=True)
class SearchErrorInfo:
    message: str
    code: str


def search_error_message(status: int, code: str | None = None) -> SearchErrorInfo:
    if status == 408 or code == TIMEOUT:
        resolved = TIMEOUT
    elif code == NO_RESULTS:
        resolved = NO_RESULTS
    elif status == 404 or code == NO_RATES:
        resolved = NO_RATES
    elif 400 <= status < 500 or code == INVALID_PARAMS:
        resolved = INVALID_PARAMS
    else:
        resolved = SEARCH_FAILED
    return SearchErrorInfo(message=MESSAGES[resolved], code=resolved)
