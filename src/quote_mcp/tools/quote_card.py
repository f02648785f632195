"""Quote card tool: concurrent fetch, market-cap resolution, card assembly."""

import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from quote_mcp.data.cache import SnapshotCache, get_snapshot_cache
from quote_mcp.data.providers import QuoteProvider, get_provider
from quote_mcp.data.records import MetricsRecord, ProfileRecord, QuoteRecord
from quote_mcp.utils.formatting import format_short_form
from quote_mcp.utils.magnitude import (
    ResolutionMethod,
    ResolverConfig,
    estimate_reference,
    resolve_magnitude,
)
from quote_mcp.utils.normalize import sanitize_nan_inf
from quote_mcp.utils.provenance import build_error_response, build_meta, build_provenance
from quote_mcp.utils.validators import normalize_symbol

logger = logging.getLogger(__name__)

_default_provider: QuoteProvider | None = None
_default_config: ResolverConfig | None = None


def default_provider() -> QuoteProvider:
    """Provider from environment settings, created on first use."""
    global _default_provider
    if _default_provider is None:
        _default_provider = get_provider()
    return _default_provider


def default_config() -> ResolverConfig:
    global _default_config
    if _default_config is None:
        _default_config = ResolverConfig.from_env()
    return _default_config


def build_quote_card(
    symbol: str,
    quote: QuoteRecord,
    profile: ProfileRecord,
    metrics: MetricsRecord,
    config: ResolverConfig | None = None,
) -> dict[str, Any]:
    """
    Assemble the presentation record from the three provider records.

    Pure: no I/O, no logging. The market cap is reconciled against
    shares outstanding x current price.

    Args:
        symbol: Normalized ticker symbol
        quote: Price and percent change
        profile: Name, logo, reported market cap, shares outstanding
        metrics: P/E figures
        config: Resolver thresholds (default: ResolverConfig())

    Returns:
        Quote card dict
    """
    reference = estimate_reference(profile.shares_outstanding, quote.current_price)
    resolution = resolve_magnitude(
        profile.reported_market_cap,
        reference,
        config or ResolverConfig(),
    )

    market_cap = resolution.to_dict()
    market_cap["short_form"] = format_short_form(resolution.canonical_value)
    market_cap["reported_value"] = profile.reported_market_cap
    market_cap["reference_value"] = reference

    return {
        "symbol": symbol,
        "price": quote.current_price,
        "percent_change": quote.percent_change,
        "market_cap": market_cap,
        "pe_ratio": metrics.pe_ratio,
        "company_name": profile.name or symbol,
        "logo_url": profile.logo_url or "",
    }


async def quote_card(
    symbol: str,
    provider: QuoteProvider | None = None,
    cache: SnapshotCache | None = None,
    config: ResolverConfig | None = None,
) -> dict[str, Any]:
    """
    Fetch quote, profile and metrics concurrently and build the quote card.

    Profile and metrics failures degrade to empty records with a warning.
    A quote failure is an error response. The resulting card is stored as
    the symbol's latest snapshot.

    Args:
        symbol: Stock ticker symbol
        provider: Quote provider (default: from environment)
        cache: Snapshot cache (default: process-wide cache)
        config: Resolver thresholds (default: from environment)

    Returns:
        Dict with meta, data_provenance and the quote card fields
    """
    start_time = perf_counter()

    try:
        normalized_symbol = normalize_symbol(symbol)
    except ValueError as e:
        return build_error_response("invalid_symbol", str(e), symbol=symbol)

    # Environment-driven settings are validated here, before any fetch
    try:
        provider = provider or default_provider()
        config = config or default_config()
    except Exception as e:
        logger.error(f"quote_card({normalized_symbol}): invalid configuration: {e}")
        return build_error_response(
            "provider_not_configured", f"Configuration error: {e}", symbol=normalized_symbol
        )

    quote_res, profile_res, metrics_res = await asyncio.gather(
        provider.fetch_quote(normalized_symbol),
        provider.fetch_profile(normalized_symbol),
        provider.fetch_metrics(normalized_symbol),
        return_exceptions=True,
    )

    if isinstance(quote_res, ValueError):
        return build_error_response("invalid_symbol", str(quote_res), symbol=normalized_symbol)
    if isinstance(quote_res, BaseException):
        logger.warning(f"quote_card({normalized_symbol}): quote fetch failed: {quote_res}")
        return build_error_response(
            "data_unavailable",
            f"Failed to fetch data: {quote_res}",
            symbol=normalized_symbol,
        )

    warnings: list[str] = []
    quote, quote_prov = quote_res

    if isinstance(profile_res, BaseException):
        logger.warning(f"quote_card({normalized_symbol}): profile fetch failed: {profile_res}")
        warnings.append(f"profile_unavailable: {type(profile_res).__name__}")
        profile, profile_prov = ProfileRecord(), None
    else:
        profile, profile_prov = profile_res

    if isinstance(metrics_res, BaseException):
        logger.warning(f"quote_card({normalized_symbol}): metrics fetch failed: {metrics_res}")
        warnings.append(f"metrics_unavailable: {type(metrics_res).__name__}")
        metrics, metrics_prov = MetricsRecord(), None
    else:
        metrics, metrics_prov = metrics_res

    card = build_quote_card(
        normalized_symbol, quote, profile, metrics, config
    )

    method = card["market_cap"]["method"]
    logger.debug(f"quote_card({normalized_symbol}): market cap resolved via {method}")
    if method == ResolutionMethod.REFERENCE_FALLBACK.value:
        logger.info(
            f"quote_card({normalized_symbol}): reported market cap "
            f"{profile.reported_market_cap} matched no scale; using shares x price"
        )
        warnings.append("market_cap_reference_fallback")
    elif method == ResolutionMethod.HEURISTIC_BUCKET.value:
        warnings.append("market_cap_heuristic_scale")

    card = sanitize_nan_inf(card)
    (cache or get_snapshot_cache()).store(card)

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("quote_card", duration_ms),
        "data_provenance": {
            "quote": build_provenance(
                source=provider.name,
                as_of=quote.as_of or datetime.now(timezone.utc).isoformat(),
                fetch=quote_prov,
                warnings=warnings,
            ),
            "profile": profile_prov,
            "metrics": metrics_prov,
        },
        **card,
    }
