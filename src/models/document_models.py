"""Structured document models.

Field aliases define the JSON wire shape shared with the store and the API,
so they must stay stable.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.constants import (
    MAX_HEADING_CHARS,
    MAX_HEADINGS,
    MAX_IMAGE_ALT_CHARS,
    MAX_IMAGES,
    MAX_LINK_TEXT_CHARS,
    MAX_LINKS,
    MAX_PARAGRAPHS,
)
from src.models.analysis_models import AnalysisResult


class Heading(BaseModel):
    """A heading element in document order."""

    level: int = Field(..., ge=1, le=6)
    text: str = Field(..., max_length=MAX_HEADING_CHARS)


class Link(BaseModel):
    """A hyperlink resolved against the page URL."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., description="Absolute link URL")
    text: str = Field(default="", max_length=MAX_LINK_TEXT_CHARS)
    is_external: bool = Field(..., alias="isExternal")


class Image(BaseModel):
    """An image resolved against the page URL."""

    src: str = Field(..., description="Absolute image URL")
    alt: str = Field(default="", max_length=MAX_IMAGE_ALT_CHARS)
    width: str | None = None
    height: str | None = None


class PageMetadata(BaseModel):
    """Known meta tags. Missing tags are empty strings."""

    author: str = ""
    keywords: str = ""
    canonical: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    og_type: str = ""
    og_url: str = ""
    twitter_card: str = ""
    twitter_title: str = ""
    language: str = ""


class ContentStats(BaseModel):
    """Size and media signals for the page."""

    model_config = ConfigDict(populate_by_name=True)

    word_count: int = Field(default=0, ge=0, alias="wordCount")
    reading_time: int = Field(default=0, ge=0, alias="readingTime")
    has_video: bool = Field(default=False, alias="hasVideo")
    has_audio: bool = Field(default=False, alias="hasAudio")
    has_form: bool = Field(default=False, alias="hasForm")


class StructuredDocument(BaseModel):
    """Normalized, bounded representation of one fetched page."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    title: str = ""
    description: str = ""
    headings: list[Heading] = Field(default_factory=list, max_length=MAX_HEADINGS)
    paragraphs: list[str] = Field(default_factory=list, max_length=MAX_PARAGRAPHS)
    links: list[Link] = Field(default_factory=list, max_length=MAX_LINKS)
    images: list[Image] = Field(default_factory=list, max_length=MAX_IMAGES)
    metadata: PageMetadata = Field(default_factory=PageMetadata)
    content_stats: ContentStats = Field(
        default_factory=ContentStats, alias="contentStats"
    )
    scraped_at: datetime = Field(..., alias="scrapedAt")
    method: str = Field(..., description="Acquisition path that produced the document")

    # Auxiliary fields, omitted from the wire shape when unset
    custom: dict[str, str] | None = None
    ai_analysis: AnalysisResult | None = Field(default=None, alias="aiAnalysis")
    ai_analysis_note: str | None = Field(default=None, alias="aiAnalysisNote")
    custom_prompt_used: bool | None = Field(default=None, alias="customPromptUsed")

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON object stored and returned by the API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
