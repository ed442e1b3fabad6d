"""Tests for the ContentScraper acquisition flows."""

import pytest

from src.constants import MAX_BATCH_URLS
from src.exceptions import FetchError, FetchErrorKind, PersistenceError, UrlValidationError
from src.services.scraper import ContentScraper

URL = "https://example.com/"
PAGE = """
<html><head><title>Example</title></head>
<body><main><h1>Example Domain</h1>
<p>This domain is for use in illustrative examples in documents.</p>
<span class="price">$5</span></main></body></html>
"""


@pytest.fixture
def scraper(stub_fetcher, fake_store):
    stub_fetcher.pages[URL] = PAGE
    return ContentScraper(fetcher=stub_fetcher, store=fake_store)


class TestAcquire:
    @pytest.mark.asyncio
    async def test_success(self, scraper):
        result = await scraper.acquire(URL)

        assert result.ok
        assert result.error is None
        assert result.document.title == "Example"
        assert result.document.url == URL
        assert result.document.ai_analysis is None

    @pytest.mark.asyncio
    async def test_invalid_url_never_fetches(self, scraper, stub_fetcher):
        result = await scraper.acquire("example.com")

        assert not result.ok
        assert isinstance(result.error, UrlValidationError)
        assert stub_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_control_character_never_fetches(self, scraper, stub_fetcher):
        result = await scraper.acquire("https://example.com/a\x01b")

        assert isinstance(result.error, UrlValidationError)
        assert stub_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_fetch_error_returned_as_value(self, scraper, stub_fetcher):
        blocked = "https://blocked.example.com/"
        stub_fetcher.errors[blocked] = FetchError(
            FetchErrorKind.BLOCKED, blocked, "HTTP 403: Forbidden", status_code=403
        )

        result = await scraper.acquire(blocked)

        assert not result.ok
        assert result.error.kind == FetchErrorKind.BLOCKED
        with pytest.raises(FetchError):
            result.unwrap()

    @pytest.mark.asyncio
    async def test_selectors_applied(self, scraper):
        result = await scraper.acquire(URL, {"price": ".price"})

        assert result.document.custom == {"price": "$5"}

    @pytest.mark.asyncio
    async def test_uses_final_url(self, fake_store):
        class RedirectingFetcher:
            async def fetch(self, url):
                from src.models.scraper_models import FetchResult

                return FetchResult(
                    url=url,
                    body='<a href="/next">Next</a>',
                    final_url="https://www.example.com/home",
                    status_code=200,
                    attempts=1,
                )

        scraper = ContentScraper(fetcher=RedirectingFetcher(), store=fake_store)

        result = await scraper.acquire(URL)

        assert result.url == URL
        assert result.document.url == "https://www.example.com/home"
        assert result.document.links[0].url == "https://www.example.com/next"
        assert result.document.links[0].is_external is False


class TestPreview:
    @pytest.mark.asyncio
    async def test_attaches_analysis_without_storing(self, scraper, fake_store, mock_analyzer):
        scraper._analyzer = mock_analyzer

        result = await scraper.preview(URL, custom_prompt="Summarize pricing")

        assert result.document.ai_analysis.provider == "pydantic-ai"
        assert result.document.custom_prompt_used is True
        assert fake_store.records == []

    @pytest.mark.asyncio
    async def test_analyze_false_skips_analysis(self, scraper, mock_analyzer):
        scraper._analyzer = mock_analyzer

        result = await scraper.preview(URL, analyze=False)

        assert result.document.ai_analysis is None
        mock_analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_analysis_failure_degrades(self, scraper, failing_analyzer):
        scraper._analyzer = failing_analyzer

        result = await scraper.preview(URL)

        assert result.ok
        assert result.document.ai_analysis.provider == "fallback"
        assert result.document.ai_analysis_note


class TestAcquireAndStore:
    @pytest.mark.asyncio
    async def test_stores_record(self, scraper, fake_store):
        result = await scraper.acquire_and_store(URL)

        assert result.record is not None
        assert result.record["url"] == URL
        assert len(fake_store.records) == 1
        assert fake_store.records[0]["content"]["title"] == "Example"

    @pytest.mark.asyncio
    async def test_failed_acquisition_not_stored(self, scraper, fake_store):
        result = await scraper.acquire_and_store("https://down.example.com/")

        assert not result.ok
        assert result.record is None
        assert fake_store.records == []

    @pytest.mark.asyncio
    async def test_persistence_error_propagates(self, scraper, fake_store):
        fake_store.fail_inserts = True

        with pytest.raises(PersistenceError):
            await scraper.acquire_and_store(URL)

    @pytest.mark.asyncio
    async def test_requires_store(self, stub_fetcher):
        scraper = ContentScraper(fetcher=stub_fetcher)

        with pytest.raises(PersistenceError, match="no document store"):
            await scraper.acquire_and_store(URL)


class TestBatchAcquire:
    @pytest.mark.asyncio
    async def test_mixed_results(self, scraper):
        results = await scraper.batch_acquire(
            [URL, "not a url", "https://down.example.com/"]
        )

        assert len(results["succeeded"]) == 1
        assert [f["url"] for f in results["failed"]] == [
            "not a url",
            "https://down.example.com/",
        ]
        assert results["failed"][0]["error"].startswith("Invalid URL format")

    @pytest.mark.asyncio
    async def test_control_character_does_not_abort_batch(self, scraper):
        results = await scraper.batch_acquire(["https://example.com/a\x01b", URL])

        assert len(results["succeeded"]) == 1
        assert results["failed"][0]["url"] == "https://example.com/a\x01b"

    @pytest.mark.asyncio
    async def test_store_failure_counted_per_url(self, scraper, fake_store):
        fake_store.fail_inserts = True

        results = await scraper.batch_acquire([URL])

        assert results["succeeded"] == []
        assert "insert_document failed" in results["failed"][0]["error"]

    @pytest.mark.asyncio
    async def test_batch_limit(self, scraper):
        with pytest.raises(ValueError, match="Maximum"):
            await scraper.batch_acquire([URL] * (MAX_BATCH_URLS + 1))
