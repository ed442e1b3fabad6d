"""Scraping endpoints: one-shot acquisition, preview, batch and refresh.

Validation and fetch failures arrive as values on AcquisitionResult and are
turned into 400 responses here. PersistenceError propagates to the
application-level handler registered in ``src.main``.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.dependencies import get_content_engine
from src.exceptions import FetchError
from src.models.api_models import BatchScrapeRequest, RefreshRequest, ScrapeRequest
from src.models.scraper_models import AcquisitionResult
from src.services.engine import ContentEngine

router = APIRouter()


def acquisition_error_response(result: AcquisitionResult) -> JSONResponse:
    """400 response describing why a URL produced no document."""
    error = result.error
    if isinstance(error, FetchError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Failed to scrape URL",
                **error.to_dict(),
            },
        )
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": "Invalid URL",
            "error": str(error),
        },
    )


@router.post("", status_code=201)
async def scrape(
    body: ScrapeRequest, engine: ContentEngine = Depends(get_content_engine)
):
    """Acquire a URL, analyze it and store a new record."""
    result = await engine.scraper.acquire_and_store(
        body.url,
        selectors=body.selectors,
        custom_prompt=body.custom_prompt,
        analyze=body.analyze_with_ai,
    )
    if not result.ok:
        return acquisition_error_response(result)
    return {
        "success": True,
        "message": "URL scraped and analyzed successfully",
        "data": result.record,
    }


@router.post("/preview")
async def preview(
    body: ScrapeRequest, engine: ContentEngine = Depends(get_content_engine)
):
    """Acquire and analyze a URL without storing it."""
    result = await engine.scraper.preview(
        body.url,
        selectors=body.selectors,
        custom_prompt=body.custom_prompt,
        analyze=body.analyze_with_ai,
    )
    if not result.ok:
        return acquisition_error_response(result)
    return {
        "success": True,
        "message": "URL scraped and analyzed successfully (preview mode)",
        "data": result.document.to_wire(),
    }


@router.post("/batch")
async def batch(
    body: BatchScrapeRequest, engine: ContentEngine = Depends(get_content_engine)
):
    """Acquire and store up to ten URLs, reporting each failure."""
    results = await engine.scraper.batch_acquire(body.urls)
    return {
        "success": True,
        "message": (
            f"Batch scraping completed. {len(results['succeeded'])} succeeded, "
            f"{len(results['failed'])} failed."
        ),
        "data": results,
    }


@router.post("/refresh")
async def refresh(
    body: RefreshRequest | None = None,
    engine: ContentEngine = Depends(get_content_engine),
):
    """Re-acquire every stored URL older than ``refreshInterval`` ms."""
    body = body or RefreshRequest()
    report = await engine.refresh(body.refresh_interval)
    return {
        "success": True,
        "message": f"Refreshed {report.refreshed} URLs, {report.failed} failed",
        **report.counts(),
    }
