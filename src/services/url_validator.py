"""URL and selector validation.

Runs before any network I/O so malformed input fails fast.
"""

import ipaddress
import re
from typing import Mapping, NamedTuple
from urllib.parse import urlsplit

import soupsieve

from src.exceptions import UrlValidationError

_ALLOWED_SCHEMES = ("http", "https")

# Dotted ASCII hostname ending in an alphabetic or punycode TLD
_HOSTNAME_RE = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})$",
    re.IGNORECASE,
)


class UrlValidationResult(NamedTuple):
    """Result of URL validation.

    Attributes:
        url: Normalized URL if valid, None otherwise.
        error: Validation error if invalid, None otherwise.
    """

    url: str | None
    error: UrlValidationError | None

    @property
    def is_valid(self) -> bool:
        return self.error is None


def _is_valid_host(hostname: str) -> bool:
    if hostname == "localhost":
        return True
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass
    try:
        ascii_host = hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    return bool(_HOSTNAME_RE.match(ascii_host))


def validate_url(raw: str) -> UrlValidationResult:
    """Validate that input is an absolute http(s) URL with a real host.

    Args:
        raw: User supplied URL

    Returns:
        UrlValidationResult with the stripped URL or the reason it was rejected.
    """

    def _reject(reason: str) -> UrlValidationResult:
        return UrlValidationResult(url=None, error=UrlValidationError(raw, reason))

    if not isinstance(raw, str) or not raw.strip():
        return _reject("URL is required")

    candidate = raw.strip()
    if any(char.isspace() for char in candidate):
        return _reject("URL must not contain whitespace")
    if any(char.isascii() and not char.isprintable() for char in candidate):
        return _reject("URL must not contain control characters")

    try:
        parts = urlsplit(candidate)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        return _reject(str(e))

    if not parts.scheme or "://" not in candidate:
        return _reject("URL must include a scheme such as https://")
    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        return _reject(f"Unsupported scheme '{parts.scheme}'")

    hostname = parts.hostname or ""
    if not hostname or not _is_valid_host(hostname):
        return _reject("URL must include a valid host")

    return UrlValidationResult(url=candidate, error=None)


def validate_selectors(selectors: Mapping[str, str] | None) -> dict[str, str]:
    """Validate a field-name to CSS-selector mapping for custom extraction.

    Returns:
        A plain dict with keys in sorted order.

    Raises:
        ValueError: If a name is empty or a selector does not compile.
    """
    if not selectors:
        return {}

    validated: dict[str, str] = {}
    for name in sorted(selectors):
        selector = selectors[name]
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Selector names must be non-empty strings")
        if not isinstance(selector, str) or not selector.strip():
            raise ValueError(f"Selector for '{name}' must be a non-empty string")
        try:
            soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError as e:
            raise ValueError(f"Invalid selector for '{name}': {e}") from e
        validated[name] = selector.strip()
    return validated
