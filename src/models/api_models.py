"""Request bodies for the scraping API."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.constants import DEFAULT_REFRESH_THRESHOLD_MS, MAX_BATCH_URLS
from src.services.url_validator import validate_selectors


class ScrapeRequest(BaseModel):
    """Body of POST /scrape and POST /scrape/preview."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1)
    selectors: dict[str, str] = Field(default_factory=dict)
    analyze_with_ai: bool = Field(default=True, alias="analyzeWithAI")
    custom_prompt: str | None = Field(default=None, alias="customPrompt")

    @field_validator("selectors")
    @classmethod
    def check_selectors(cls, value: dict[str, str]) -> dict[str, str]:
        return validate_selectors(value)


class BatchScrapeRequest(BaseModel):
    """Body of POST /scrape/batch."""

    urls: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_URLS)


class RefreshRequest(BaseModel):
    """Body of POST /scrape/refresh."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_interval: int = Field(
        default=DEFAULT_REFRESH_THRESHOLD_MS, ge=0, alias="refreshInterval"
    )
