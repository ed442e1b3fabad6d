"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Infrastructure: mock_logfire, respx_mock, mock_settings, mock_supabase_client
2. Test doubles: FakeDocumentStore, StubPageFetcher, stub analyzers
3. Sample data: sample_html, fixed_timestamp, make_document
4. Application: content_engine, test_client
"""

import math
import os
import uuid
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
import respx
from hypothesis import HealthCheck, settings

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

# The autouse logfire mock is function scoped; it holds no per-example state
settings.register_profile(
    "engine", suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.load_profile("engine")

from src.exceptions import FetchError, FetchErrorKind, PersistenceError
from src.models.analysis_models import AnalysisResult
from src.models.document_models import Heading, StructuredDocument
from src.models.refresh_models import RefreshCandidate
from src.models.scraper_models import FetchResult

FIXED_TIMESTAMP = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Test doubles
# =============================================================================


class FakeDocumentStore:
    """In-memory DocumentStore with the read-side API of SupabaseDocumentStore.

    Set ``fail_updates_for`` to a set of URLs to make update_by_url raise
    PersistenceError for them, or ``fail_listing`` to make find_older_than raise.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None):
        self.records: list[dict[str, Any]] = list(records or [])
        self.updates: list[tuple[str, StructuredDocument]] = []
        self.fail_updates_for: set[str] = set()
        self.fail_inserts = False
        self.fail_listing = False

    def add(self, url: str, scraped_at: datetime, **extra: Any) -> dict[str, Any]:
        record = {
            "id": str(uuid.uuid4()),
            "url": url,
            "title": extra.pop("title", url),
            "content": extra.pop("content", {}),
            "scraped_at": scraped_at,
            "created_at": extra.pop("created_at", scraped_at),
            **extra,
        }
        self.records.append(record)
        return record

    async def insert(self, document: StructuredDocument) -> dict[str, Any]:
        if self.fail_inserts:
            raise PersistenceError("insert_document", "insert rejected")
        return self.add(
            document.url,
            document.scraped_at,
            title=document.title,
            content=document.to_wire(),
            created_at=datetime.now(timezone.utc),
        )

    async def find_older_than(
        self, cutoff: datetime, limit: int
    ) -> list[RefreshCandidate]:
        if self.fail_listing:
            raise PersistenceError("find_older_than", "store unavailable")
        rows = sorted(
            (r for r in self.records if r["scraped_at"] < cutoff),
            key=lambda r: r["scraped_at"],
        )
        return [
            RefreshCandidate(url=r["url"], last_scraped_at=r["scraped_at"])
            for r in rows[:limit]
        ]

    async def update_by_url(self, url: str, document: StructuredDocument) -> None:
        if url in self.fail_updates_for:
            raise PersistenceError("update_by_url", f"write rejected for {url}")
        matches = [r for r in self.records if r["url"] == url]
        if not matches:
            raise PersistenceError("update_by_url", f"no record for {url}")
        latest = max(matches, key=lambda r: r["created_at"])
        latest["scraped_at"] = document.scraped_at
        latest["content"] = document.to_wire()
        self.updates.append((url, document))

    async def list_documents(self, page: int = 1, limit: int = 10) -> dict[str, Any]:
        start = (page - 1) * limit
        return {
            "data": self.records[start : start + limit],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": len(self.records),
                "totalPages": math.ceil(len(self.records) / limit),
            },
        }

    async def get_document(self, record_id: str) -> dict[str, Any] | None:
        return next((r for r in self.records if r["id"] == record_id), None)

    async def get_documents_by_url(self, url: str) -> list[dict[str, Any]]:
        return [r for r in self.records if r["url"] == url]

    async def search_documents(self, query: str) -> list[dict[str, Any]]:
        term = query.lower()
        return [
            r
            for r in self.records
            if term in r["url"].lower() or term in str(r["title"]).lower()
        ]

    async def delete_document(self, record_id: str) -> None:
        self.records = [r for r in self.records if r["id"] != record_id]

    async def get_statistics(self) -> dict[str, Any]:
        return {
            "totalScraped": len(self.records),
            "uniqueUrls": len({r["url"] for r in self.records}),
            "lastScraped": None,
        }


class StubPageFetcher:
    """PageFetcher returning canned FetchResults keyed by URL.

    Unknown URLs fail as unreachable.
    """

    def __init__(self, pages: dict[str, str] | None = None):
        self.pages = dict(pages or {})
        self.errors: dict[str, FetchError] = {}
        self.calls: list[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        if url in self.errors:
            return FetchResult(url=url, attempts=4, error=self.errors[url])
        if url in self.pages:
            return FetchResult(
                url=url, body=self.pages[url], final_url=url, status_code=200, attempts=1
            )
        return FetchResult(
            url=url,
            attempts=4,
            error=FetchError(FetchErrorKind.UNREACHABLE, url, "ConnectError: refused"),
        )


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture(autouse=True)
def mock_logfire(monkeypatch):
    """Replace logfire's logging calls so tests never emit telemetry.

    Returns the mock so tests can assert on log calls.
    """
    import logfire

    mock_logfire_module = MagicMock()
    for attr in [
        "info",
        "warn",
        "warning",
        "error",
        "configure",
        "instrument_fastapi",
        "instrument_pydantic",
        "instrument_pydantic_ai",
    ]:
        mock = Mock()
        setattr(mock_logfire_module, attr, mock)
        monkeypatch.setattr(logfire, attr, mock)
    return mock_logfire_module


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings for tests: no analysis, no backoff, fake Supabase."""
    from src.config import Settings

    settings = Settings(
        supabase_url="https://test.supabase.co",
        supabase_service_key="test-service-key",
        pydantic_ai_gateway_api_key=None,
        analysis_enabled=False,
        scraper_retry_backoff_seconds=0.0,
        env="local",
        logfire_token=None,
        sentry_dsn=None,
    )

    monkeypatch.setattr("src.config.get_settings", lambda: settings)
    monkeypatch.setattr("src.main.get_settings", lambda: settings)
    monkeypatch.setattr("src.cli.engine_cli.get_settings", lambda: settings)
    return settings


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder chains return themselves.

    Configure ``client.query.execute.return_value`` to shape results.
    """
    client = MagicMock()
    query = MagicMock()
    for method in [
        "select",
        "insert",
        "update",
        "delete",
        "eq",
        "lt",
        "or_",
        "order",
        "limit",
        "range",
    ]:
        getattr(query, method).return_value = query
    result = MagicMock()
    result.data = []
    result.count = 0
    query.execute.return_value = result
    client.table.return_value = query
    client.query = query
    return client


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def fixed_timestamp():
    return FIXED_TIMESTAMP


@pytest.fixture
def sample_html():
    """A page exercising every extracted field."""
    return """
    <html lang="en">
    <head>
        <title>Acme Widgets | Home</title>
        <meta name="description" content="Quality widgets since 1999.">
        <meta name="keywords" content="widgets, gadgets, tools">
        <meta name="author" content="Acme Team">
        <meta property="og:title" content="Acme Widgets">
        <meta property="og:type" content="website">
        <meta name="twitter:card" content="summary">
        <link rel="canonical" href="https://acme.example.com/">
        <style>.hidden { display: none; }</style>
        <script>var tracking = "secret";</script>
    </head>
    <body>
        <nav><a href="#top">Skip</a><a href="javascript:void(0)">Menu</a></nav>
        <main>
            <h1>Welcome to Acme</h1>
            <h2>Our Products</h2>
            <h3>Hi</h3>
            <p>Cookie settings: we use cookies to improve your experience here.</p>
            <p>Acme builds durable widgets for industrial and home use worldwide.</p>
            <p>Short text.</p>
            <a href="/products">Products</a>
            <a href="/products">Products again</a>
            <a href="https://partner.example.org/offer">Partner offer</a>
            <img src="/img/hero.png" alt="Hero widget" width="640" height="480">
            <img src="/img/hero.png" alt="Duplicate hero">
            <img src="/img/logo.svg" alt="Logo">
            <img src="data:image/png;base64,AAAA" alt="Inline">
            <span class="price">$19.99</span>
            <video src="/intro.mp4"></video>
            <form action="/subscribe"><input name="email"></form>
        </main>
        <iframe src="https://www.youtube.com/embed/abc"></iframe>
    </body>
    </html>
    """


@pytest.fixture
def make_document(fixed_timestamp):
    """Factory for StructuredDocument instances with sensible defaults."""

    def _make(url: str = "https://example.com/", **overrides: Any) -> StructuredDocument:
        fields: dict[str, Any] = {
            "url": url,
            "title": "Example Domain",
            "description": "An example page used in documentation.",
            "headings": [Heading(level=1, text="Example Domain")],
            "paragraphs": [
                "This domain is for use in illustrative examples in documents."
            ],
            "scraped_at": fixed_timestamp,
            "method": "static",
        }
        fields.update(overrides)
        return StructuredDocument(**fields)

    return _make


@pytest.fixture
def sample_analysis(fixed_timestamp):
    return AnalysisResult(
        summary="A sample page.",
        key_points=["Point one"],
        category="documentation",
        sentiment="neutral",
        purpose="Illustrate examples",
        topics=["examples"],
        target_audience="Developers",
        main_takeaway="Examples are useful",
        provider="pydantic-ai",
        model="test-model",
        analyzed_at=fixed_timestamp,
    )


@pytest.fixture
def mock_analyzer(sample_analysis):
    """Analyzer that always succeeds."""
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(return_value=sample_analysis)
    return analyzer


@pytest.fixture
def failing_analyzer():
    """Analyzer that always raises."""
    from src.exceptions import AnalysisError

    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(side_effect=AnalysisError("model unavailable"))
    return analyzer


# =============================================================================
# Application
# =============================================================================


@pytest.fixture
def fake_store():
    return FakeDocumentStore()


@pytest.fixture
def stub_fetcher():
    return StubPageFetcher()


@pytest.fixture
def content_engine(fake_store, stub_fetcher):
    """ContentEngine wired to in-memory doubles."""
    from src.services.document_extractor import DocumentExtractor
    from src.services.engine import ContentEngine
    from src.services.refresh_scheduler import RefreshScheduler
    from src.services.scraper import ContentScraper
    from src.services.staleness_detector import StalenessDetector

    scraper = ContentScraper(
        fetcher=stub_fetcher,
        extractor=DocumentExtractor(),
        analyzer=None,
        store=fake_store,
    )
    scheduler = RefreshScheduler(StalenessDetector(fake_store), scraper, fake_store)
    return ContentEngine(scraper=scraper, scheduler=scheduler, store=fake_store)


@pytest.fixture
def test_client(mock_settings, content_engine, monkeypatch):
    """FastAPI TestClient for E2E tests, with the engine swapped for doubles."""
    from fastapi.testclient import TestClient

    from src.api.dependencies import get_content_engine
    from src.main import app

    monkeypatch.setattr("src.main.setup_logfire", Mock())
    monkeypatch.setattr("src.main.get_supabase_client", Mock(return_value=MagicMock()))
    monkeypatch.setattr("src.main.build_content_engine", Mock(return_value=content_engine))

    app.dependency_overrides[get_content_engine] = lambda: content_engine
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
