"""Response envelopes: meta block, per-source provenance, error responses."""

from datetime import datetime
from typing import Any

from quote_mcp import SCHEMA_VERSION, SERVER_VERSION

# invalid_symbol: ticker rejected by validation or by the provider
# data_unavailable: quote fetch failed for any other reason
# provider_not_configured: bad QUOTE_* / FINNHUB_* / MCAP_* settings
ERROR_TYPES = ("invalid_symbol", "data_unavailable", "provider_not_configured")


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """Versions and timing for the tool response; duration rounded to 0.1 ms."""
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(
    source: str,
    as_of: datetime | str | None = None,
    fetch: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    """
    Provenance for one record or snapshot.

    Args:
        source: Provider name ("yfinance", "finnhub") or "cache" / "live"
        as_of: Quote timestamp, datetime or ISO string
        fetch: Retry/singleflight details from the provider
        warnings: Degradation notes, e.g. "market_cap_heuristic_scale"
    """
    prov: dict[str, Any] = {"source": source}
    if as_of is not None:
        prov["as_of"] = as_of.isoformat() if isinstance(as_of, datetime) else as_of
    if fetch is not None:
        prov["fetch"] = fetch
    prov["warnings"] = list(warnings or [])
    return prov


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
) -> dict[str, Any]:
    """Standard error body. error_type is one of ERROR_TYPES."""
    if error_type not in ERROR_TYPES:
        raise ValueError(f"Unknown error type: {error_type}")

    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }
    if symbol is not None:
        response["symbol"] = symbol
    return response
