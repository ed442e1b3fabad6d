"""Error taxonomy for content acquisition and refresh.

Validation and fetch failures are expected conditions: services return them
inside result objects (see ``src.models.scraper_models``) and only the API
layer turns them into HTTP errors. ``PersistenceError`` is raised by the store
adapter and propagates to the caller of a single acquisition.
"""

from enum import Enum


class UrlValidationError(ValueError):
    """Input is not an absolute http(s) URL."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL format: {reason}")


class FetchErrorKind(str, Enum):
    """Classification of a failed fetch after every identity was tried."""

    BLOCKED = "blocked"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"


_FETCH_ERROR_DETAILS = {
    FetchErrorKind.BLOCKED: (
        "This website is blocking automated requests. "
        "Try a different URL or contact the site owner."
    ),
    FetchErrorKind.UNREACHABLE: (
        "Cannot reach the website. Check if the URL is correct and the site is online."
    ),
    FetchErrorKind.TIMEOUT: (
        "The website took too long to respond. This is usually transient; try again later."
    ),
    FetchErrorKind.HTTP_ERROR: (
        "Unable to access the website. Please try again or use a different URL."
    ),
}


class FetchError(Exception):
    """Classified fetch failure.

    Attributes:
        kind: Failure classification
        url: Requested URL
        status_code: Last HTTP status seen, if any response arrived
        message: Low-level description of the last failure
    """

    def __init__(
        self,
        kind: FetchErrorKind,
        url: str,
        message: str,
        status_code: int | None = None,
    ):
        self.kind = kind
        self.url = url
        self.message = message
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")

    @property
    def details(self) -> str:
        """User-facing explanation of why the URL could not be fetched."""
        return _FETCH_ERROR_DETAILS[self.kind]

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "kind": self.kind.value,
            "error": self.message,
            "details": self.details,
            "status_code": self.status_code,
        }


class ExtractionError(Exception):
    """Markup could not be turned into a document.

    The extractor degrades to empty fields instead of raising this; it exists
    so callers can name the category in error reports.
    """


class AnalysisError(Exception):
    """The analysis collaborator failed. Always absorbed by the caller."""


class PersistenceError(Exception):
    """A document store operation failed."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")
