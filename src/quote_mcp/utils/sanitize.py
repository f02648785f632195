"""Text sanitization for provider-supplied strings."""

import re
from urllib.parse import urlparse

# Control characters, including \r, \x00-\x1f and \x7f-\x9f
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_text(text: str | None, max_length: int = 200) -> str | None:
    """
    Sanitize untrusted text fields such as company names.

    Args:
        text: Text to sanitize (may be None)
        max_length: Maximum length before truncation

    Returns:
        Sanitized text, or None if input was None or blank
    """
    if text is None:
        return None

    text = _CONTROL_CHARS.sub("", str(text))

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text.strip() or None


def sanitize_url(url: str | None) -> str | None:
    """
    Accept only absolute http(s) URLs, e.g. for company logos.

    Returns:
        Cleaned URL or None
    """
    if url is None:
        return None
    url = _CONTROL_CHARS.sub("", str(url)).strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url
