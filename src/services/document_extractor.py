"""Turn fetched markup into a bounded StructuredDocument.

Extraction is pure over (markup, source URL, selectors, timestamp) and
tolerates malformed markup: the worst case is a document with empty fields.
"""

import math
import re
from datetime import datetime, timezone
from typing import Mapping
from urllib.parse import urljoin, urlsplit

import logfire
import soupsieve
from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from src.constants import (
    ACQUISITION_METHOD_STATIC,
    MAX_DESCRIPTION_FALLBACK_CHARS,
    MAX_HEADING_CHARS,
    MAX_HEADINGS,
    MAX_IMAGE_ALT_CHARS,
    MAX_IMAGES,
    MAX_LINK_TEXT_CHARS,
    MAX_LINKS,
    MAX_PARAGRAPH_CHARS,
    MAX_PARAGRAPHS,
    MIN_HEADING_CHARS,
    MIN_PARAGRAPH_CHARS,
    WORDS_PER_MINUTE,
)
from src.models.document_models import (
    ContentStats,
    Heading,
    Image,
    Link,
    PageMetadata,
    StructuredDocument,
)

# Elements that never carry readable content
_NON_CONTENT_TAGS = ["script", "style", "noscript", "iframe"]

_HEADING_TAG_RE = re.compile(r"^h[1-6]$")

# Navigation and consent chrome that is not article text
_BOILERPLATE_RE = re.compile(r"^(cookie|accept|deny|close|menu|nav)", re.IGNORECASE)

# First match wins; used for word count only
_MAIN_CONTENT_SELECTOR = "article, main, .content, .post-content, .entry-content"

_VIDEO_EMBED_HOSTS = ("youtube", "youtu.be", "vimeo", "dailymotion", "wistia")

_WHITESPACE_RE = re.compile(r"\s+")


def _clean_text(element: Tag) -> str:
    """Visible text of an element with whitespace collapsed."""
    return _WHITESPACE_RE.sub(" ", element.get_text()).strip()


def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _resolve(base_url: str, href: str) -> str | None:
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def _is_vector_or_inline(src: str) -> bool:
    lowered = src.lower()
    if lowered.startswith("data:") or "data:image" in lowered:
        return True
    path = urlsplit(lowered).path if "://" in lowered else lowered.split("?", 1)[0]
    return path.endswith(".svg")


class DocumentExtractor:
    """Extract a StructuredDocument from HTML."""

    def __init__(self, method: str = ACQUISITION_METHOD_STATIC):
        """Initialize the extractor.

        Args:
            method: Tag stored in StructuredDocument.method
        """
        self._method = method

    def extract(
        self,
        html: str,
        source_url: str,
        selectors: Mapping[str, str] | None = None,
        *,
        scraped_at: datetime | None = None,
        method: str | None = None,
    ) -> StructuredDocument:
        """Parse markup into a structured document.

        Args:
            html: Raw HTML content
            source_url: Final (redirect-resolved) URL the HTML came from
            selectors: Optional field name to CSS selector map for custom fields
            scraped_at: Extraction timestamp (defaults to now, UTC)
            method: Acquisition path tag (defaults to the extractor's method)

        Returns:
            StructuredDocument with every capped list within its limit
        """
        soup = self._parse(html or "", source_url)

        # Media signals come first: iframes are stripped below
        content_stats = ContentStats(
            has_video=self._has_video(soup),
            has_audio=soup.find("audio") is not None,
            has_form=soup.find("form") is not None,
        )

        for tag in soup(_NON_CONTENT_TAGS):
            tag.decompose()

        meta = self._collect_meta(soup)
        word_count = self._main_content_word_count(soup)
        content_stats.word_count = word_count
        content_stats.reading_time = math.ceil(word_count / WORDS_PER_MINUTE)

        document = StructuredDocument(
            url=source_url,
            title=self._extract_title(soup),
            description=self._extract_description(soup, meta),
            headings=self._extract_headings(soup),
            paragraphs=self._extract_paragraphs(soup),
            links=self._extract_links(soup, source_url),
            images=self._extract_images(soup, source_url),
            metadata=self._extract_metadata(soup, meta),
            content_stats=content_stats,
            scraped_at=scraped_at or datetime.now(timezone.utc),
            method=method or self._method,
            custom=self._extract_custom(soup, selectors) if selectors else None,
        )

        logfire.info(
            "Document extracted",
            url=source_url,
            heading_count=len(document.headings),
            paragraph_count=len(document.paragraphs),
            link_count=len(document.links),
            image_count=len(document.images),
            word_count=word_count,
        )
        return document

    @staticmethod
    def _parse(html: str, source_url: str) -> BeautifulSoup:
        try:
            return BeautifulSoup(html, "html.parser")
        except ParserRejectedMarkup as e:
            logfire.warn(
                "Markup rejected by parser, extracting empty document",
                url=source_url,
                error=str(e),
            )
            return BeautifulSoup("", "html.parser")

    @staticmethod
    def _has_video(soup: BeautifulSoup) -> bool:
        if soup.find("video") is not None:
            return True
        for embed in soup.find_all(["iframe", "embed"], src=True):
            src = _attr(embed, "src").lower()
            if any(host in src for host in _VIDEO_EMBED_HOSTS):
                return True
        return False

    @staticmethod
    def _collect_meta(soup: BeautifulSoup) -> dict[str, str]:
        """Map lower-cased meta name/property to content; first non-empty wins."""
        meta: dict[str, str] = {}
        for tag in soup.find_all("meta"):
            key = _attr(tag, "name") or _attr(tag, "property")
            content = _attr(tag, "content")
            if key and content and key.lower() not in meta:
                meta[key.lower()] = content
        return meta

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str:
        if soup.title is not None:
            title = _clean_text(soup.title)
            if title:
                return title
        h1 = soup.find("h1")
        if h1 is not None:
            text = _clean_text(h1)
            if text:
                return text
        return "No title"

    @staticmethod
    def _extract_description(soup: BeautifulSoup, meta: dict[str, str]) -> str:
        for key in ("description", "og:description"):
            if meta.get(key):
                return meta[key]
        first_paragraph = soup.find("p")
        if first_paragraph is not None:
            return _clean_text(first_paragraph)[:MAX_DESCRIPTION_FALLBACK_CHARS]
        return ""

    @staticmethod
    def _extract_metadata(soup: BeautifulSoup, meta: dict[str, str]) -> PageMetadata:
        canonical = soup.find("link", rel="canonical")
        html_tag = soup.find("html")
        return PageMetadata(
            author=meta.get("author", ""),
            keywords=meta.get("keywords", ""),
            canonical=_attr(canonical, "href") if canonical is not None else "",
            og_title=meta.get("og:title", ""),
            og_description=meta.get("og:description", ""),
            og_image=meta.get("og:image", ""),
            og_type=meta.get("og:type", ""),
            og_url=meta.get("og:url", ""),
            twitter_card=meta.get("twitter:card", ""),
            twitter_title=meta.get("twitter:title", ""),
            language=_attr(html_tag, "lang") if html_tag is not None else "",
        )

    @staticmethod
    def _extract_headings(soup: BeautifulSoup) -> list[Heading]:
        headings: list[Heading] = []
        for element in soup.find_all(_HEADING_TAG_RE):
            text = _clean_text(element)
            if len(text) <= MIN_HEADING_CHARS:
                continue
            headings.append(
                Heading(level=int(element.name[1]), text=text[:MAX_HEADING_CHARS])
            )
            if len(headings) == MAX_HEADINGS:
                break
        return headings

    @staticmethod
    def _extract_paragraphs(soup: BeautifulSoup) -> list[str]:
        paragraphs: list[str] = []
        for element in soup.find_all("p"):
            text = _clean_text(element)
            if len(text) <= MIN_PARAGRAPH_CHARS or _BOILERPLATE_RE.match(text):
                continue
            paragraphs.append(text[:MAX_PARAGRAPH_CHARS])
            if len(paragraphs) == MAX_PARAGRAPHS:
                break
        return paragraphs

    @staticmethod
    def _main_content_word_count(soup: BeautifulSoup) -> int:
        container = soup.select_one(_MAIN_CONTENT_SELECTOR)
        if container is None:
            return 0
        return len(container.get_text().split())

    @staticmethod
    def _extract_links(soup: BeautifulSoup, source_url: str) -> list[Link]:
        source_host = urlsplit(source_url).hostname
        seen: set[str] = set()
        links: list[Link] = []

        for anchor in soup.find_all("a", href=True):
            href = _attr(anchor, "href")
            if not href or href.startswith("#") or href.lower().startswith("javascript:"):
                continue
            absolute = _resolve(source_url, href)
            if absolute is None or absolute in seen:
                continue
            seen.add(absolute)
            try:
                link_host = urlsplit(absolute).hostname
            except ValueError:
                link_host = None
            links.append(
                Link(
                    url=absolute,
                    text=_clean_text(anchor)[:MAX_LINK_TEXT_CHARS],
                    is_external=link_host != source_host,
                )
            )
            if len(links) == MAX_LINKS:
                break
        return links

    @staticmethod
    def _extract_images(soup: BeautifulSoup, source_url: str) -> list[Image]:
        seen: set[str] = set()
        images: list[Image] = []

        for element in soup.find_all("img", src=True):
            src = _attr(element, "src")
            if not src or _is_vector_or_inline(src):
                continue
            absolute = _resolve(source_url, src)
            if absolute is None or absolute in seen:
                continue
            seen.add(absolute)
            images.append(
                Image(
                    src=absolute,
                    alt=_attr(element, "alt")[:MAX_IMAGE_ALT_CHARS],
                    width=_attr(element, "width") or None,
                    height=_attr(element, "height") or None,
                )
            )
            if len(images) == MAX_IMAGES:
                break
        return images

    @staticmethod
    def _extract_custom(
        soup: BeautifulSoup, selectors: Mapping[str, str]
    ) -> dict[str, str]:
        custom: dict[str, str] = {}
        for name in sorted(selectors):
            try:
                element = soup.select_one(selectors[name])
            except (soupsieve.SelectorSyntaxError, ValueError, TypeError):
                element = None
            custom[name] = _clean_text(element) if element is not None else ""
        return custom
