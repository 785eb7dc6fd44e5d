"""Error taxonomy. Every failure a route can surface maps to one of these."""


class AppError(Exception):
    status_code = 500
    code = "SEARCH_FAILED"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, status_code: int | None = None, code: str | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": {"message": self.message, "code": self.code}}


class ValidationError(AppError):
    """Missing or malformed input. Raised before any upstream call."""
    status_code = 400
    code = "INVALID_PARAMS"
    default_message = "Something's missing in your search."


class ConfigurationError(AppError):
    """A required secret or setting is absent. Message is for operators."""
    status_code = 500
    code = "CONFIGURATION_ERROR"
    default_message = "Server is not configured"


class UpstreamError(AppError):
    status_code = 500
    code = "UPSTREAM_ERROR"
    default_message = "Upstream provider request failed"


class UpstreamUnauthorized(UpstreamError):
    status_code = 401
    code = "UPSTREAM_UNAUTHORIZED"
    default_message = "LiteAPI rejected this request as unauthorized."


class UpstreamTimeout(UpstreamError):
    status_code = 408
    code = "TIMEOUT"
    default_message = "The search is taking longer than usual."


class NotFound(AppError):
    """Restricted or nonexistent place. The message never says which."""
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Place not available"


class NoRatesAvailable(AppError):
    status_code = 404
    code = "NO_RATES"
    default_message = (
        "We don't have availability for these dates in this area. "
        "Try changing your dates or looking at a nearby area."
    )
