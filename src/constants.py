"""Application-wide constants.

This module centralizes all magic numbers and configuration constants
to ensure a single source of truth and easier maintenance.
"""

# =============================================================================
# Fetch Configuration
# =============================================================================

# Per-attempt timeout for page fetches (seconds)
DEFAULT_HTTP_TIMEOUT_SECONDS = 20.0

# Maximum redirects followed by a single fetch attempt
DEFAULT_MAX_REDIRECTS = 5

# Fixed wait between identity-profile attempts (seconds)
RETRY_BACKOFF_SECONDS = 1.0

# Statuses that move the fetcher on to the next identity profile
RETRYABLE_STATUS_CODES = frozenset((401, 403, 408, 425, 429))

# Statuses reported as "site is blocking bots"
BLOCKED_STATUS_CODES = frozenset((401, 403, 429))

# Browser identities rotated on each retry (ordered; attempt 1 uses the first)
_COMMON_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
    "Referer": "https://www.google.com/",
}

IDENTITY_PROFILES: tuple[dict[str, str], ...] = (
    {
        **_COMMON_HEADERS,
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
    },
    {
        **_COMMON_HEADERS,
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
    },
    {
        **_COMMON_HEADERS,
        "User-Agent": (
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
    },
    {
        **_COMMON_HEADERS,
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) "
            "Gecko/20100101 Firefox/120.0"
        ),
    },
)

# =============================================================================
# Extraction Limits
# =============================================================================

MAX_HEADINGS = 50
MAX_PARAGRAPHS = 20
MAX_LINKS = 50
MAX_IMAGES = 30

MAX_HEADING_CHARS = 300
MAX_PARAGRAPH_CHARS = 800
MAX_LINK_TEXT_CHARS = 150
MAX_IMAGE_ALT_CHARS = 250
MAX_DESCRIPTION_FALLBACK_CHARS = 200

# Paragraphs must be strictly longer than this to be kept
MIN_PARAGRAPH_CHARS = 30

# Headings must be strictly longer than this to be kept
MIN_HEADING_CHARS = 2

# Average reading speed used for contentStats.readingTime
WORDS_PER_MINUTE = 200

# Tag recorded in StructuredDocument.method for plain HTTP acquisition
ACQUISITION_METHOD_STATIC = "static"

# =============================================================================
# Refresh Configuration
# =============================================================================

# Default staleness threshold for a refresh run (milliseconds)
DEFAULT_REFRESH_THRESHOLD_MS = 60_000

# Safety cap on candidates per refresh cycle
REFRESH_BATCH_LIMIT = 10

# Maximum URLs accepted by a single batch acquisition
MAX_BATCH_URLS = 10

# =============================================================================
# Analysis Configuration
# =============================================================================

# Timeout for a single analysis call (seconds)
ANALYSIS_TIMEOUT_SECONDS = 45.0

# Maximum characters of paragraph text sent for analysis
ANALYSIS_CONTENT_MAX_CHARS = 3000

# Provider tag written on deterministic fallback analyses
FALLBACK_ANALYSIS_PROVIDER = "fallback"

# =============================================================================
# Storage
# =============================================================================

SCRAPED_DATA_TABLE = "scraped_data"

# Default page size for listing stored documents
DEFAULT_PAGE_SIZE = 10

# Maximum rows returned by a stored-document search
SEARCH_RESULT_LIMIT = 20
