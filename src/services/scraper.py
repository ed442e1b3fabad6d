"""Single-URL acquisition: validate, fetch, extract, then optionally analyze and store.

``ContentScraper.acquire`` is the core chain used both by the API and by the
refresh scheduler. Validation and fetch failures come back inside an
AcquisitionResult rather than being raised; only store failures raise.
"""

import time
from typing import Any, Mapping, Sequence

import logfire

from src.constants import MAX_BATCH_URLS
from src.db.repository import DocumentStore
from src.exceptions import PersistenceError
from src.models.scraper_models import AcquisitionResult
from src.services.analysis_service import ContentAnalyzer, apply_analysis
from src.services.document_extractor import DocumentExtractor
from src.services.page_fetcher import PageFetcher, RotatingPageFetcher
from src.services.url_validator import validate_url


class ContentScraper:
    """Coordinate acquisition of one URL into a StructuredDocument.

    Components are injected so each one can be replaced in tests.
    """

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        extractor: DocumentExtractor | None = None,
        analyzer: ContentAnalyzer | None = None,
        store: DocumentStore | None = None,
    ):
        """Initialize the scraper.

        Args:
            fetcher: Page fetcher implementation (defaults to RotatingPageFetcher)
            extractor: Document extractor (defaults to DocumentExtractor)
            analyzer: Analysis collaborator; None means fallback analysis only
            store: Document store; required only for the persisting flows
        """
        self._fetcher = fetcher or RotatingPageFetcher()
        self._extractor = extractor or DocumentExtractor()
        self._analyzer = analyzer
        self._store = store

    async def acquire(
        self, url: str, selectors: Mapping[str, str] | None = None
    ) -> AcquisitionResult:
        """Validate, fetch and extract one URL.

        Args:
            url: Raw URL supplied by the caller
            selectors: Optional custom field selectors

        Returns:
            AcquisitionResult with the document, or the validation/fetch error
        """
        start_time = time.time()

        validation = validate_url(url)
        if not validation.is_valid:
            logfire.warn("Rejected invalid URL", url=url, reason=validation.error.reason)
            return AcquisitionResult(url=url, error=validation.error)

        fetched = await self._fetcher.fetch(validation.url)
        if not fetched.ok:
            return AcquisitionResult(url=validation.url, error=fetched.error)

        document = self._extractor.extract(
            fetched.body, fetched.final_url or validation.url, selectors
        )
        logfire.info(
            "Acquisition completed",
            url=validation.url,
            final_url=document.url,
            attempts=fetched.attempts,
            total_time_ms=(time.time() - start_time) * 1000,
        )
        return AcquisitionResult(url=validation.url, document=document)

    async def preview(
        self,
        url: str,
        selectors: Mapping[str, str] | None = None,
        custom_prompt: str | None = None,
        analyze: bool = True,
    ) -> AcquisitionResult:
        """Acquire and analyze without persisting."""
        result = await self.acquire(url, selectors)
        if not result.ok or not analyze:
            return result
        document = await apply_analysis(result.document, self._analyzer, custom_prompt)
        return AcquisitionResult(url=result.url, document=document)

    async def acquire_and_store(
        self,
        url: str,
        selectors: Mapping[str, str] | None = None,
        custom_prompt: str | None = None,
        analyze: bool = True,
    ) -> AcquisitionResult:
        """Acquire, analyze and insert a new record.

        Raises:
            PersistenceError: If no store is configured or the insert fails
        """
        if self._store is None:
            raise PersistenceError("insert_document", "no document store configured")

        result = await self.preview(url, selectors, custom_prompt, analyze)
        if not result.ok:
            return result

        record = await self._store.insert(result.document)
        return AcquisitionResult(url=result.url, document=result.document, record=record)

    async def batch_acquire(self, urls: Sequence[str]) -> dict[str, list[dict[str, Any]]]:
        """Acquire and store several URLs one after another.

        Returns:
            {"succeeded": [stored records], "failed": [{"url", "error"}]}

        Raises:
            ValueError: If more than MAX_BATCH_URLS are requested
        """
        if len(urls) > MAX_BATCH_URLS:
            raise ValueError(f"Maximum {MAX_BATCH_URLS} URLs allowed per batch")

        succeeded: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []
        for url in urls:
            try:
                result = await self.acquire_and_store(url, analyze=False)
            except PersistenceError as e:
                failed.append({"url": url, "error": str(e)})
                continue
            if result.ok:
                succeeded.append(result.record or {})
            else:
                failed.append({"url": url, "error": str(result.error)})

        logfire.info(
            "Batch acquisition completed",
            requested=len(urls),
            succeeded=len(succeeded),
            failed=len(failed),
        )
        return {"succeeded": succeeded, "failed": failed}
