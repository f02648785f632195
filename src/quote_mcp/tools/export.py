"""Copy-to-clipboard and CSV export tools."""

import logging
from time import perf_counter
from typing import Any

from quote_mcp.data.cache import SnapshotCache, get_snapshot_cache
from quote_mcp.data.providers import QuoteProvider
from quote_mcp.tools.quote_card import quote_card
from quote_mcp.utils.export import CSV_COLUMNS, card_to_csv, card_to_text
from quote_mcp.utils.magnitude import ResolverConfig
from quote_mcp.utils.provenance import build_error_response, build_meta, build_provenance
from quote_mcp.utils.validators import QuoteParams

logger = logging.getLogger(__name__)

# Keys of the presentation record, i.e. a response minus meta/provenance
_CARD_KEYS = (
    "symbol",
    "price",
    "percent_change",
    "market_cap",
    "pe_ratio",
    "company_name",
    "logo_url",
)


async def _load_card(
    params: QuoteParams,
    provider: QuoteProvider | None,
    cache: SnapshotCache,
    config: ResolverConfig | None,
) -> tuple[dict[str, Any] | None, dict[str, Any] | None, str]:
    """
    Latest card for the symbol: cached snapshot first, fresh lookup otherwise.

    Returns:
        Tuple of (card or None, error response or None, source)
    """
    card = cache.get(params.symbol)
    if card is not None:
        logger.debug(f"export({params.symbol}): reusing cached snapshot")
        return card, None, "cache"

    result = await quote_card(params.symbol, provider=provider, cache=cache, config=config)
    if result.get("error"):
        return None, result, "live"
    return {k: result[k] for k in _CARD_KEYS}, None, "live"


async def copy_quote(
    symbol: str,
    provider: QuoteProvider | None = None,
    cache: SnapshotCache | None = None,
    config: ResolverConfig | None = None,
) -> dict[str, Any]:
    """
    Render the quote card as clipboard text.

    Args:
        symbol: Stock ticker symbol

    Returns:
        Dict with meta, symbol and text
    """
    start_time = perf_counter()
    try:
        params = QuoteParams(symbol)
    except ValueError as e:
        return build_error_response("invalid_symbol", str(e), symbol=symbol)

    cache = cache or get_snapshot_cache()
    card, error, source = await _load_card(params, provider, cache, config)
    if error is not None:
        return error

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("copy_quote", duration_ms),
        "data_provenance": {"snapshot": build_provenance(source=source)},
        "symbol": params.symbol,
        "text": card_to_text(card),
    }


async def export_quote_csv(
    symbol: str,
    provider: QuoteProvider | None = None,
    cache: SnapshotCache | None = None,
    config: ResolverConfig | None = None,
) -> dict[str, Any]:
    """
    Export the quote card as a one-row CSV.

    Args:
        symbol: Stock ticker symbol

    Returns:
        Dict with meta, filename ({SYMBOL}_data.csv), columns and csv text
    """
    start_time = perf_counter()
    try:
        params = QuoteParams(symbol)
    except ValueError as e:
        return build_error_response("invalid_symbol", str(e), symbol=symbol)

    cache = cache or get_snapshot_cache()
    card, error, source = await _load_card(params, provider, cache, config)
    if error is not None:
        return error

    duration_ms = (perf_counter() - start_time) * 1000
    return {
        "meta": build_meta("export_quote_csv", duration_ms),
        "data_provenance": {"snapshot": build_provenance(source=source)},
        "symbol": params.symbol,
        "filename": params.csv_filename(),
        "mime_type": "text/csv",
        "columns": list(CSV_COLUMNS),
        "csv": card_to_csv(card),
    }
