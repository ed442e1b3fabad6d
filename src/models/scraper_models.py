"""Models for fetch and acquisition results."""

from dataclasses import dataclass
from typing import Any

from src.exceptions import FetchError, UrlValidationError
from src.models.document_models import StructuredDocument


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching one URL across all identity profiles.

    Exactly one of ``body`` and ``error`` is set.

    Attributes:
        url: Requested URL
        body: Response markup on success
        final_url: URL after following redirects (success only)
        status_code: Status of the successful response
        attempts: Number of identity profiles tried
        error: Classified failure once every profile was exhausted
    """

    url: str
    body: str | None = None
    final_url: str | None = None
    status_code: int | None = None
    attempts: int = 0
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.body is not None


@dataclass(frozen=True)
class AcquisitionResult:
    """Structured document for a URL, or the reason it could not be produced.

    ``record`` is the stored row when the flow persisted the document.
    """

    url: str
    document: StructuredDocument | None = None
    error: UrlValidationError | FetchError | None = None
    record: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.document is not None

    def unwrap(self) -> StructuredDocument:
        """Return the document or raise the recorded error."""
        if self.document is None:
            raise self.error or RuntimeError(f"No document acquired for {self.url}")
        return self.document
