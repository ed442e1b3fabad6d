"""Content engine facade and its single wiring point."""

import os
from datetime import timedelta

import logfire
from supabase import Client

from src.config import Settings
from src.constants import DEFAULT_REFRESH_THRESHOLD_MS
from src.db.client import get_supabase_client
from src.db.repository import SupabaseDocumentStore
from src.logging_config import mask_pii
from src.models.refresh_models import RefreshReport
from src.services.analysis_service import ContentAnalyzer, PydanticAIContentAnalyzer
from src.services.document_extractor import DocumentExtractor
from src.services.page_fetcher import RotatingPageFetcher
from src.services.refresh_scheduler import RefreshScheduler
from src.services.scraper import ContentScraper
from src.services.staleness_detector import StalenessDetector


class ContentEngine:
    """Entry point used by the API and the CLI.

    Holds the scraper for one-shot acquisition, the scheduler for refresh
    cycles, and the store for the read-side data endpoints.
    """

    def __init__(
        self,
        scraper: ContentScraper,
        scheduler: RefreshScheduler,
        store: SupabaseDocumentStore,
    ):
        self.scraper = scraper
        self.scheduler = scheduler
        self.store = store

    async def refresh(self, threshold_ms: int = DEFAULT_REFRESH_THRESHOLD_MS) -> RefreshReport:
        """Refresh every document older than ``threshold_ms`` milliseconds."""
        if threshold_ms < 0:
            raise ValueError("threshold_ms must be non-negative")
        logfire.info("Refresh requested", threshold_ms=threshold_ms)
        return await self.scheduler.run(timedelta(milliseconds=threshold_ms))


def build_analyzer(settings: Settings) -> ContentAnalyzer | None:
    """Analysis collaborator for the configured model, or None when disabled."""
    if not settings.analysis_enabled:
        return None
    if settings.pydantic_ai_gateway_api_key:
        # The gateway provider reads its key from the process environment
        os.environ.setdefault(
            "PYDANTIC_AI_GATEWAY_API_KEY", settings.pydantic_ai_gateway_api_key
        )
        logfire.info(
            "Analysis gateway key configured",
            key=mask_pii(settings.pydantic_ai_gateway_api_key),
        )
    return PydanticAIContentAnalyzer(
        model=settings.analysis_model,
        timeout_seconds=settings.analysis_timeout_seconds,
    )


def build_content_engine(
    settings: Settings, client: Client | None = None
) -> ContentEngine:
    """Construct every collaborator explicitly and wire them together.

    Args:
        settings: Application settings
        client: Existing Supabase client (created from settings when omitted)

    Returns:
        Ready-to-use ContentEngine
    """
    store = SupabaseDocumentStore(
        client or get_supabase_client(settings),
        table=settings.scraped_data_table,
    )
    fetcher = RotatingPageFetcher(
        timeout=settings.scraper_timeout_seconds,
        max_redirects=settings.scraper_max_redirects,
        backoff_seconds=settings.scraper_retry_backoff_seconds,
    )
    analyzer = build_analyzer(settings)
    scraper = ContentScraper(
        fetcher=fetcher,
        extractor=DocumentExtractor(),
        analyzer=analyzer,
        store=store,
    )
    detector = StalenessDetector(store, batch_limit=settings.refresh_batch_limit)
    scheduler = RefreshScheduler(detector, scraper, store, analyzer=analyzer)

    logfire.info(
        "Content engine built",
        analysis_enabled=analyzer is not None,
        analysis_model=settings.analysis_model if analyzer else None,
        table=settings.scraped_data_table,
    )
    return ContentEngine(scraper=scraper, scheduler=scheduler, store=store)
