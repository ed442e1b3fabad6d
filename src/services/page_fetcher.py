"""Page fetching with identity rotation and retry.

Each fetch walks an ordered list of browser identities (header sets). An
attempt that fails at the transport level or returns a retryable status is
followed by a fixed backoff and another attempt with the next identity. The
first 2xx response wins. Attempts for one URL never run concurrently.
"""

import asyncio
import time
from typing import Protocol, Sequence

import httpx
import logfire

from src.constants import (
    BLOCKED_STATUS_CODES,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    IDENTITY_PROFILES,
    RETRY_BACKOFF_SECONDS,
    RETRYABLE_STATUS_CODES,
)
from src.exceptions import FetchError, FetchErrorKind
from src.models.scraper_models import FetchResult


class PageFetcher(Protocol):
    """Protocol for fetching page content."""

    async def fetch(self, url: str) -> FetchResult:
        """Fetch HTML content from an already validated URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult holding the body and final URL, or a classified FetchError
        """
        ...


def classify_status(status_code: int) -> FetchErrorKind:
    """Map a non-success HTTP status onto the fetch error taxonomy."""
    if status_code in BLOCKED_STATUS_CODES:
        return FetchErrorKind.BLOCKED
    return FetchErrorKind.HTTP_ERROR


def is_retryable_status(status_code: int) -> bool:
    """True if another identity might get a different answer."""
    return status_code in RETRYABLE_STATUS_CODES or status_code >= 500


def classify_transport_error(url: str, exc: httpx.HTTPError) -> FetchError:
    """Classify an httpx transport exception."""
    if isinstance(exc, httpx.TimeoutException):
        kind = FetchErrorKind.TIMEOUT
    elif isinstance(exc, httpx.TooManyRedirects):
        kind = FetchErrorKind.HTTP_ERROR
    elif isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError)):
        kind = FetchErrorKind.UNREACHABLE
    else:
        kind = FetchErrorKind.HTTP_ERROR
    return FetchError(kind, url, f"{type(exc).__name__}: {exc}")


class RotatingPageFetcher:
    """Fetch pages with httpx, rotating browser identities between attempts."""

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        backoff_seconds: float = RETRY_BACKOFF_SECONDS,
        profiles: Sequence[dict[str, str]] | None = None,
    ):
        """Initialize the page fetcher.

        Args:
            timeout: Per-attempt HTTP timeout in seconds
            max_redirects: Redirects followed per attempt
            backoff_seconds: Fixed wait before moving to the next identity
            profiles: Ordered identity header sets (defaults to IDENTITY_PROFILES)
        """
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._backoff_seconds = backoff_seconds
        self._profiles = list(profiles or IDENTITY_PROFILES)
        if not self._profiles:
            raise ValueError("At least one identity profile is required")

    @property
    def profile_count(self) -> int:
        return len(self._profiles)

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a page, trying each identity profile in order.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with body and final URL, or the last classified error
        """
        start_time = time.time()
        last_error: FetchError | None = None
        attempts = 0

        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            max_redirects=self._max_redirects,
        ) as client:
            for index, headers in enumerate(self._profiles):
                if index > 0:
                    await asyncio.sleep(self._backoff_seconds)
                attempts += 1

                try:
                    response = await client.get(url, headers=headers)
                except httpx.InvalidURL as e:
                    # No identity can make httpx accept the URL
                    last_error = FetchError(
                        FetchErrorKind.HTTP_ERROR, url, f"InvalidURL: {e}"
                    )
                    logfire.warn(
                        "Fetch attempt rejected URL",
                        url=url,
                        attempt=attempts,
                        error=str(e),
                    )
                    break
                except httpx.HTTPError as e:
                    last_error = classify_transport_error(url, e)
                    logfire.warn(
                        "Fetch attempt failed",
                        url=url,
                        attempt=attempts,
                        error_kind=last_error.kind.value,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    continue

                if response.is_success:
                    body = response.text
                    logfire.info(
                        "Page fetched",
                        url=url,
                        final_url=str(response.url),
                        status_code=response.status_code,
                        attempt=attempts,
                        content_length=len(body),
                        response_time_ms=(time.time() - start_time) * 1000,
                    )
                    return FetchResult(
                        url=url,
                        body=body,
                        final_url=str(response.url),
                        status_code=response.status_code,
                        attempts=attempts,
                    )

                status = response.status_code
                last_error = FetchError(
                    classify_status(status),
                    url,
                    f"HTTP {status}: {response.reason_phrase}",
                    status_code=status,
                )
                logfire.warn(
                    "Fetch attempt returned non-success status",
                    url=url,
                    attempt=attempts,
                    status_code=status,
                    error_kind=last_error.kind.value,
                )
                if not is_retryable_status(status):
                    break

        if last_error is None:
            raise RuntimeError(f"No fetch attempt was made for {url}")
        logfire.error(
            "Fetch failed",
            url=url,
            attempts=attempts,
            error_kind=last_error.kind.value,
            status_code=last_error.status_code,
            error=last_error.message,
            response_time_ms=(time.time() - start_time) * 1000,
        )
        return FetchResult(url=url, attempts=attempts, error=last_error)
