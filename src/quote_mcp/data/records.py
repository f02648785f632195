"""Provider-neutral quote, profile and metrics records.

Each record is built from one provider payload. Malformed, NaN or missing
fields become None here so everything downstream only deals with
"value or None".
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

import pytz

from quote_mcp.utils.normalize import to_finite_float
from quote_mcp.utils.sanitize import sanitize_text, sanitize_url

DEFAULT_EXCHANGE_TZ = "America/New_York"

# Finnhub reports shares outstanding in millions
FINNHUB_SHARES_MULTIPLIER = 1_000_000


def _as_of_from_epoch(epoch: Any, tz_name: str | None) -> str | None:
    """Epoch seconds -> ISO timestamp in the exchange time zone."""
    seconds = to_finite_float(epoch)
    if seconds is None or seconds <= 0:
        return None
    try:
        tz = pytz.timezone(tz_name or DEFAULT_EXCHANGE_TZ)
    except pytz.UnknownTimeZoneError:
        tz = pytz.timezone(DEFAULT_EXCHANGE_TZ)
    return datetime.fromtimestamp(seconds, tz).isoformat()


@dataclass(frozen=True)
class QuoteRecord:
    current_price: float | None = None
    percent_change: float | None = None
    # ISO timestamp of the last trade, in exchange time
    as_of: str | None = None

    @classmethod
    def from_yfinance_info(cls, info: dict[str, Any]) -> QuoteRecord:
        price = to_finite_float(info.get("currentPrice"))
        if price is None:
            price = to_finite_float(info.get("regularMarketPrice"))

        change = to_finite_float(info.get("regularMarketChangePercent"))
        if change is None:
            previous_close = to_finite_float(
                info.get("regularMarketPreviousClose") or info.get("previousClose")
            )
            if price is not None and previous_close:
                change = (price - previous_close) / previous_close * 100

        return cls(
            current_price=price,
            percent_change=change,
            as_of=_as_of_from_epoch(
                info.get("regularMarketTime"), info.get("exchangeTimezoneName")
            ),
        )

    @classmethod
    def from_finnhub(cls, payload: dict[str, Any]) -> QuoteRecord:
        return cls(
            current_price=to_finite_float(payload.get("c")),
            percent_change=to_finite_float(payload.get("dp")),
            as_of=_as_of_from_epoch(payload.get("t"), DEFAULT_EXCHANGE_TZ),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProfileRecord:
    name: str | None = None
    logo_url: str | None = None
    # Unknown scale; resolved by quote_mcp.utils.magnitude
    reported_market_cap: float | None = None
    # Raw share count
    shares_outstanding: float | None = None

    @classmethod
    def from_yfinance_info(cls, info: dict[str, Any]) -> ProfileRecord:
        shares = to_finite_float(info.get("sharesOutstanding"))
        if shares is None:
            shares = to_finite_float(info.get("impliedSharesOutstanding"))
        return cls(
            name=sanitize_text(info.get("longName") or info.get("shortName")),
            logo_url=sanitize_url(info.get("logo_url")),
            reported_market_cap=to_finite_float(info.get("marketCap")),
            shares_outstanding=shares,
        )

    @classmethod
    def from_finnhub(cls, payload: dict[str, Any]) -> ProfileRecord:
        shares = to_finite_float(payload.get("shareOutstanding"))
        if shares is not None:
            shares *= FINNHUB_SHARES_MULTIPLIER
        return cls(
            name=sanitize_text(payload.get("name")),
            logo_url=sanitize_url(payload.get("logo")),
            # Passed through unscaled on purpose; magnitude resolution decides
            reported_market_cap=to_finite_float(payload.get("marketCapitalization")),
            shares_outstanding=shares,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MetricsRecord:
    pe_ttm: float | None = None
    pe_normalized_ttm: float | None = None

    @classmethod
    def from_yfinance_info(cls, info: dict[str, Any]) -> MetricsRecord:
        # yfinance has no normalized P/E; forward P/E is the closest stand-in
        return cls(
            pe_ttm=to_finite_float(info.get("trailingPE")),
            pe_normalized_ttm=to_finite_float(info.get("forwardPE")),
        )

    @classmethod
    def from_finnhub(cls, payload: dict[str, Any]) -> MetricsRecord:
        metric = payload.get("metric")
        if not isinstance(metric, dict):
            return cls()
        return cls(
            pe_ttm=to_finite_float(metric.get("peTTM")),
            pe_normalized_ttm=to_finite_float(metric.get("peNormalizedAnnual")),
        )

    @property
    def pe_ratio(self) -> float | None:
        """TTM P/E, falling back to the normalized figure."""
        return self.pe_ttm if self.pe_ttm is not None else self.pe_normalized_ttm

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
