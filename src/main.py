"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from src.api import data, health, scraper
from src.config import get_settings
from src.db.client import get_supabase_client
from src.exceptions import PersistenceError
from src.logging_config import setup_logfire
from src.services.engine import build_content_engine

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the content engine once and share it through app state."""
    settings = get_settings()

    setup_logfire(app, settings)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            environment=settings.env,
            integrations=[FastApiIntegration()],
        )

    supabase = get_supabase_client(settings)
    app.state.supabase = supabase
    app.state.engine = build_content_engine(settings, client=supabase)

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        analysis_model=settings.analysis_model,
        analysis_enabled=settings.analysis_enabled,
    )

    yield

    app.state.engine = None
    logfire.info("Application shutdown complete")


app = FastAPI(
    title="Content Acquisition Engine",
    description="Fetch web pages into structured documents and keep them fresh",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logfire.error(
        "Store operation failed",
        path=request.url.path,
        operation=exc.operation,
        error=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Storage error", "error": str(exc)},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
    )


app.include_router(health.router, tags=["health"])
app.include_router(scraper.router, prefix="/scrape", tags=["scrape"])
app.include_router(data.router, prefix="/data", tags=["data"])


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Content Acquisition Engine API",
        "version": APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=port, reload=os.getenv("ENV") == "local"
    )
