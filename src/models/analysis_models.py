"""Content analysis models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PageAnalysis(BaseModel):
    """
    Structured analysis of one web page.

    This model is used as output_type for PydanticAI, so the descriptions
    double as instructions to the model.
    """

    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field(
        ..., description="Insightful 3-5 sentence summary of the page content"
    )
    key_points: list[str] = Field(
        ...,
        alias="keyPoints",
        description="3-6 specific key points or findings",
    )
    category: str = Field(
        ...,
        description=(
            "One of: news, blog, documentation, e-commerce, social, educational, "
            "entertainment, business, technology, other"
        ),
    )
    sentiment: str = Field(
        ..., description="Overall tone, e.g. positive, negative, neutral, mixed, informative"
    )
    purpose: str = Field(..., description="Primary reason the page exists")
    topics: list[str] = Field(default_factory=list, description="Main topics or keywords")
    target_audience: str = Field(
        default="", alias="targetAudience", description="Who the page is written for"
    )
    main_takeaway: str = Field(
        default="", alias="mainTakeaway", description="Single most important message"
    )


class AnalysisResult(PageAnalysis):
    """Analysis attached to a StructuredDocument, with provenance."""

    provider: str = Field(..., description="Analysis provider tag, e.g. 'fallback'")
    model: str | None = None
    analyzed_at: datetime = Field(..., alias="analyzedAt")
    confidence: str = Field(default="high")
    note: str | None = None
