"""Content analysis using PydanticAI Gateway, with a deterministic fallback.

Analysis is best-effort everywhere it is used: ``apply_analysis`` absorbs any
failure of the analyzer and attaches ``build_fallback_analysis`` instead, so a
broken or unconfigured model never aborts acquisition or refresh.
"""

import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from typing import Protocol

import logfire
from pydantic_ai import Agent

from src.constants import (
    ANALYSIS_CONTENT_MAX_CHARS,
    ANALYSIS_TIMEOUT_SECONDS,
    FALLBACK_ANALYSIS_PROVIDER,
)
from src.exceptions import AnalysisError
from src.models.analysis_models import AnalysisResult, PageAnalysis
from src.models.document_models import StructuredDocument

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = """You are a web content analyst with expertise in SEO, UX and content strategy.
You receive the extracted content of a single web page.
Be specific: cite names, numbers and concrete facts from the content instead of generic observations.
Pick the category that fits best and keep key points short and actionable."""

DEGRADED_ANALYSIS_NOTE = "AI analysis unavailable - using basic analysis"

# Ordered (pattern, label) rules; first match wins
CATEGORY_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"news|article|breaking|report"), "news"),
    (re.compile(r"blog|post|author"), "blog"),
    (re.compile(r"docs|documentation|api|guide|tutorial"), "documentation"),
    (re.compile(r"shop|buy|cart|product|price"), "e-commerce"),
    (re.compile(r"social|profile|follow|share"), "social"),
    (re.compile(r"learn|course|education|school|university"), "educational"),
    (re.compile(r"video|movie|music|game|entertainment"), "entertainment"),
    (re.compile(r"business|company|service|enterprise"), "business"),
    (re.compile(r"tech|software|code|developer|programming"), "technology"),
)
DEFAULT_CATEGORY = "other"

MAX_TOPICS = 5
MAX_KEY_POINTS = 5


class ContentAnalyzer(Protocol):
    """Protocol for the analysis collaborator."""

    async def analyze(
        self, document: StructuredDocument, custom_prompt: str | None = None
    ) -> AnalysisResult:
        """Analyze a document. May raise; callers must absorb failures."""
        ...


def prepare_content_for_analysis(document: StructuredDocument) -> str:
    """Flatten the parts of a document that matter for analysis into text."""
    parts: list[str] = [f"Title: {document.title}", f"URL: {document.url}"]

    if document.description:
        parts.append(f"Description: {document.description}")

    metadata = document.metadata
    if metadata.author:
        parts.append(f"Author: {metadata.author}")
    if metadata.keywords:
        parts.append(f"Keywords: {metadata.keywords}")
    if metadata.og_type:
        parts.append(f"Type: {metadata.og_type}")

    stats = document.content_stats
    stat_parts = []
    if stats.word_count:
        stat_parts.append(f"{stats.word_count} words")
    if stats.reading_time:
        stat_parts.append(f"{stats.reading_time} min read")
    if stats.has_video:
        stat_parts.append("contains video")
    if stats.has_form:
        stat_parts.append("has forms")
    if stat_parts:
        parts.append(f"Stats: {', '.join(stat_parts)}")

    h1s = [h.text for h in document.headings if h.level == 1]
    h2s = [h.text for h in document.headings if h.level == 2][:5]
    if h1s:
        parts.append(f"Main Heading: {', '.join(h1s)}")
    if h2s:
        parts.append(f"Subheadings: {', '.join(h2s)}")

    if document.paragraphs:
        main_content = " ".join(document.paragraphs[:5])[:ANALYSIS_CONTENT_MAX_CHARS]
        parts.append(f"Main Content:\n{main_content}")

    image_alts = [image.alt for image in document.images if image.alt][:5]
    if image_alts:
        parts.append(f"Image descriptions: {', '.join(image_alts)}")

    return "\n\n".join(parts)


def detect_category(document: StructuredDocument) -> str:
    """Classify a page from its title and description using CATEGORY_RULES."""
    text = f"{document.title} {document.description}".lower()
    for pattern, label in CATEGORY_RULES:
        if pattern.search(text):
            return label
    return DEFAULT_CATEGORY


def extract_topics(document: StructuredDocument) -> list[str]:
    """Topics from meta keywords, then long words of the first headings."""
    topics: list[str] = []

    def _add(topic: str) -> None:
        topic = topic.strip()
        if topic and topic not in topics:
            topics.append(topic)

    if document.metadata.keywords:
        for keyword in document.metadata.keywords.split(","):
            _add(keyword)

    for heading in document.headings[:3]:
        words = [word for word in heading.text.split() if len(word) > 4]
        for word in words[:2]:
            _add(word)

    return topics[:MAX_TOPICS]


def build_fallback_analysis(
    document: StructuredDocument, note: str | None = None
) -> AnalysisResult:
    """Deterministic analysis derived only from the document (no network).

    ``summary`` and ``key_points`` are never empty.
    """
    summary = (
        document.description
        or (document.paragraphs[0] if document.paragraphs else "")
        or f"This webpage contains information about {document.title}"
    )

    key_points = [heading.text for heading in document.headings[:MAX_KEY_POINTS]]
    if not key_points:
        key_points = [paragraph[:200] for paragraph in document.paragraphs[:3]]
    if not key_points:
        key_points = [f"Content from {document.title}"]

    return AnalysisResult(
        summary=summary,
        key_points=key_points,
        category=detect_category(document),
        sentiment="informative",
        purpose="To provide information to visitors",
        topics=extract_topics(document),
        target_audience="General public",
        main_takeaway=document.title,
        provider=FALLBACK_ANALYSIS_PROVIDER,
        analyzed_at=datetime.now(timezone.utc),
        confidence="low",
        note=note or "Basic analysis without AI API",
    )


class PydanticAIContentAnalyzer:
    """Analyze documents with a PydanticAI agent returning PageAnalysis."""

    def __init__(
        self,
        model: str,
        timeout_seconds: float = ANALYSIS_TIMEOUT_SECONDS,
        enabled: bool = True,
    ):
        """
        Initialize the analyzer.

        Args:
            model: Model string (e.g., 'gateway/anthropic:claude-3-5-haiku-latest')
            timeout_seconds: Upper bound for one analysis call
            enabled: When False every call raises AnalysisError immediately
        """
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self._agent: Agent | None = None

    def _get_agent(self) -> Agent:
        # Built lazily so a missing gateway key surfaces as an analysis failure
        if self._agent is None:
            self._agent = Agent(
                self.model,
                output_type=PageAnalysis,
                system_prompt=ANALYSIS_SYSTEM_PROMPT,
                retries=1,
            )
        return self._agent

    def build_prompt(
        self, document: StructuredDocument, custom_prompt: str | None = None
    ) -> str:
        content = prepare_content_for_analysis(document)
        if custom_prompt and custom_prompt.strip():
            return f"""{custom_prompt.strip()}

WEBPAGE CONTENT:
{content}"""
        return f"""Analyze the following web page and return a structured analysis.

WEBPAGE CONTENT:
{content}

Include a summary, key points, the best-fitting category, sentiment, purpose,
main topics, target audience and the main takeaway."""

    async def analyze(
        self, document: StructuredDocument, custom_prompt: str | None = None
    ) -> AnalysisResult:
        """Run the agent on a document.

        Raises:
            AnalysisError: If analysis is disabled, times out or fails
        """
        if not self.enabled:
            raise AnalysisError("Analysis is disabled")

        start_time = time.time()
        try:
            agent = self._get_agent()
            result = await asyncio.wait_for(
                agent.run(self.build_prompt(document, custom_prompt)),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logfire.error(
                "Content analysis failed",
                url=document.url,
                model=self.model,
                error=str(e),
                error_type=type(e).__name__,
                response_time_ms=(time.time() - start_time) * 1000,
            )
            raise AnalysisError(f"Analysis failed for {document.url}: {e}") from e

        analysis: PageAnalysis = result.output
        logfire.info(
            "Content analysis completed",
            url=document.url,
            model=self.model,
            category=analysis.category,
            custom_prompt=bool(custom_prompt),
            response_time_ms=(time.time() - start_time) * 1000,
        )
        return AnalysisResult(
            **analysis.model_dump(),
            provider="pydantic-ai",
            model=self.model,
            analyzed_at=datetime.now(timezone.utc),
            confidence="high",
        )


async def apply_analysis(
    document: StructuredDocument,
    analyzer: ContentAnalyzer | None,
    custom_prompt: str | None = None,
) -> StructuredDocument:
    """Attach an analysis to a document, falling back on any analyzer failure.

    Returns:
        A copy of the document with ``ai_analysis`` set. Degraded analyses
        also carry ``ai_analysis_note``.
    """
    custom_prompt_used = bool(custom_prompt and custom_prompt.strip())

    if analyzer is None:
        return document.model_copy(
            update={
                "ai_analysis": build_fallback_analysis(document),
                "ai_analysis_note": DEGRADED_ANALYSIS_NOTE,
                "custom_prompt_used": custom_prompt_used,
            }
        )

    try:
        analysis = await analyzer.analyze(document, custom_prompt)
    except Exception as e:
        logger.warning(f"Analysis failed for {document.url}, using fallback: {e}")
        logfire.warn(
            "Using fallback analysis",
            url=document.url,
            error=str(e),
            error_type=type(e).__name__,
        )
        return document.model_copy(
            update={
                "ai_analysis": build_fallback_analysis(document, DEGRADED_ANALYSIS_NOTE),
                "ai_analysis_note": DEGRADED_ANALYSIS_NOTE,
                "custom_prompt_used": custom_prompt_used,
            }
        )

    return document.model_copy(
        update={"ai_analysis": analysis, "custom_prompt_used": custom_prompt_used}
    )
