"""Tests for text sanitization."""

import pytest

from quote_mcp.utils.sanitize import sanitize_text, sanitize_url


class TestSanitizeText:
    """Tests for sanitize_text function."""

    def test_sanitize_none(self) -> None:
        """Test sanitize returns None for None input."""
        assert sanitize_text(None) is None

    def test_sanitize_basic(self) -> None:
        assert sanitize_text("Apple Inc.") == "Apple Inc."

    def test_sanitize_strips_whitespace(self) -> None:
        assert sanitize_text("  Apple Inc.  ") == "Apple Inc."

    def test_sanitize_removes_control_chars(self) -> None:
        """Test control characters are removed."""
        assert sanitize_text("Apple\x00 Inc\x1f.") == "Apple Inc."

    def test_sanitize_removes_high_control_chars(self) -> None:
        """Test high control characters (0x7f-0x9f) are removed."""
        assert sanitize_text("Apple\x7f Inc\x9f") == "Apple Inc"

    def test_sanitize_truncates_long_text(self) -> None:
        """Test long text is truncated with ellipsis."""
        result = sanitize_text("x" * 300, max_length=200)
        assert result == "x" * 200 + "..."

    def test_blank_becomes_none(self) -> None:
        """Whitespace-only names are treated as missing."""
        assert sanitize_text("   \r\n") is None

    def test_non_string_coerced(self) -> None:
        assert sanitize_text(123) == "123"


class TestSanitizeUrl:
    """Tests for sanitize_url function."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://static2.finnhub.io/file/publicdatany/finnhubimage/stock_logo/AAPL.png",
            "http://example.com/logo.png",
        ],
    )
    def test_accepts_http_urls(self, url: str) -> None:
        assert sanitize_url(url) == url

    @pytest.mark.parametrize(
        "url",
        [None, "", "javascript:alert(1)", "data:image/png;base64,AAAA", "/relative/logo.png", "https://"],
    )
    def test_rejects_other_urls(self, url) -> None:
        assert sanitize_url(url) is None

    def test_strips_control_chars(self) -> None:
        assert sanitize_url(" https://example.com/a.png\n") == "https://example.com/a.png"
