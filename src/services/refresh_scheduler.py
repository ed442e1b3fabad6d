"""Concurrent refresh of stale documents."""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Callable

import logfire

from src.db.repository import DocumentStore
from src.models.refresh_models import RefreshCandidate, RefreshOutcome, RefreshReport
from src.services.analysis_service import ContentAnalyzer, apply_analysis
from src.services.scraper import ContentScraper
from src.services.staleness_detector import StalenessDetector


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshScheduler:
    """Re-acquire every stale URL at once and report partial success.

    Each candidate runs its own chain (fetch, extract, analysis, store update).
    One failing chain never cancels the others.
    """

    def __init__(
        self,
        detector: StalenessDetector,
        scraper: ContentScraper,
        store: DocumentStore,
        analyzer: ContentAnalyzer | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._detector = detector
        self._scraper = scraper
        self._store = store
        self._analyzer = analyzer
        self._clock = clock

    async def run(self, threshold: timedelta) -> RefreshReport:
        """Run one refresh cycle.

        Args:
            threshold: Maximum age before a record is refreshed

        Returns:
            RefreshReport whose counts add up to the number of candidates

        Raises:
            PersistenceError: Only if listing the candidates fails
        """
        start_time = time.time()
        candidates = await self._detector.find_stale(threshold)
        if not candidates:
            logfire.info("No stale documents to refresh")
            return RefreshReport()

        results = await asyncio.gather(
            *(self.refresh_one(candidate) for candidate in candidates),
            return_exceptions=True,
        )

        outcomes: list[RefreshOutcome] = []
        for candidate, result in zip(candidates, results):
            if isinstance(result, BaseException):
                outcomes.append(
                    RefreshOutcome(
                        url=candidate.url,
                        success=False,
                        timestamp=self._clock(),
                        error=str(result) or type(result).__name__,
                    )
                )
            else:
                outcomes.append(result)

        report = RefreshReport.from_outcomes(outcomes)
        logfire.info(
            "Refresh cycle completed",
            candidates=len(candidates),
            refreshed=report.refreshed,
            failed=report.failed,
            total_time_ms=(time.time() - start_time) * 1000,
        )
        return report

    async def refresh_one(self, candidate: RefreshCandidate) -> RefreshOutcome:
        """Re-acquire one URL and overwrite its latest stored record."""
        try:
            result = await self._scraper.acquire(candidate.url)
            document = result.unwrap()
            document = await apply_analysis(document, self._analyzer)
            await self._store.update_by_url(candidate.url, document)
        except Exception as e:
            logfire.warn(
                "Refresh failed",
                url=candidate.url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return RefreshOutcome(
                url=candidate.url,
                success=False,
                timestamp=self._clock(),
                error=str(e) or type(e).__name__,
            )

        logfire.info("Document refreshed", url=candidate.url)
        return RefreshOutcome(url=candidate.url, success=True, timestamp=self._clock())
