"""Pytest configuration and fixtures."""

from typing import Any

import pytest

from quote_mcp.data.cache import SnapshotCache
from quote_mcp.data.providers import ProviderSettings, QuoteProvider
from quote_mcp.data.records import MetricsRecord, ProfileRecord, QuoteRecord


class FakeProvider(QuoteProvider):
    """In-memory provider speaking the Finnhub payload shapes."""

    name = "fake"

    def __init__(
        self,
        payloads: dict[str, Any],
        errors: dict[str, Exception] | None = None,
    ):
        super().__init__(ProviderSettings(max_retries=0, base_delay=0.0))
        self.payloads = payloads
        self.errors = errors or {}
        self.calls: list[tuple[str, str]] = []

    def _load(self, kind: str, symbol: str) -> Any:
        self.calls.append((kind, symbol))
        if kind in self.errors:
            raise self.errors[kind]
        return self.payloads.get(kind, {})

    def _build(self, kind: str, payload: Any) -> Any:
        if kind == "quote":
            return QuoteRecord.from_finnhub(payload)
        if kind == "profile":
            return ProfileRecord.from_finnhub(payload)
        return MetricsRecord.from_finnhub(payload)


@pytest.fixture
def aapl_finnhub_payloads() -> dict[str, Any]:
    """Finnhub-shaped AAPL payloads (market cap and shares in millions)."""
    return {
        "quote": {"c": 191.03, "dp": 1.14, "t": 1700000000},
        "profile": {
            "name": "Apple Inc",
            "logo": "https://static.finnhub.io/logo/87cb30d8-80df-11ea-8951-00000000092a.png",
            "marketCapitalization": 2980000,
            "shareOutstanding": 15600,
        },
        "metrics": {"metric": {"peTTM": 32.8, "peNormalizedAnnual": 30.1}},
    }


@pytest.fixture
def aapl_info() -> dict[str, Any]:
    """yfinance Ticker.info subset for AAPL (market cap in raw dollars)."""
    return {
        "symbol": "AAPL",
        "quoteType": "EQUITY",
        "shortName": "Apple Inc.",
        "longName": "Apple Inc.",
        "currentPrice": 191.03,
        "regularMarketPrice": 191.03,
        "regularMarketChangePercent": 1.14,
        "regularMarketTime": 1700000000,
        "exchangeTimezoneName": "America/New_York",
        "marketCap": 2_980_000_000_000,
        "sharesOutstanding": 15_600_000_000,
        "trailingPE": 32.8,
        "forwardPE": 28.4,
    }


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    """FakeProvider class, for tests that need custom payloads or errors."""
    return FakeProvider


@pytest.fixture
def fake_provider(aapl_finnhub_payloads: dict[str, Any]) -> FakeProvider:
    return FakeProvider(aapl_finnhub_payloads)


@pytest.fixture
def snapshot_cache(tmp_path) -> SnapshotCache:
    """Snapshot cache in a temporary directory."""
    cache = SnapshotCache(cache_dir=str(tmp_path / "quotes"), default_ttl=60)
    yield cache
    cache.close()


@pytest.fixture
def sample_card() -> dict[str, Any]:
    """Resolved AAPL quote card."""
    return {
        "symbol": "AAPL",
        "price": 191.03,
        "percent_change": 1.14,
        "market_cap": {
            "canonical_value": 2.98e12,
            "short_form": "$2.98T",
            "method": "matched-to-reference",
            "chosen_scale": 1_000_000,
            "confident": True,
            "score": 1e-05,
            "reported_value": 2980000.0,
            "reference_value": 2.980068e12,
        },
        "pe_ratio": 32.8,
        "company_name": "Apple Inc",
        "logo_url": "",
    }
