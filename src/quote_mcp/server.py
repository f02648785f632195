"""Quote card MCP server using FastMCP."""

import asyncio
import json
import logging
import os

from fastmcp import FastMCP

from quote_mcp import SCHEMA_VERSION, SERVER_VERSION
from quote_mcp.data.providers import shutdown_executor
from quote_mcp.resources.quote_resource import ResourceNotFoundError, read_quote_resource
from quote_mcp.tools import copy_quote, export_quote_csv, quote_card, resolve_market_cap
from quote_mcp.tools.quote_card import default_config

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(
    name="quote-card",
)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def get_quote(symbol: str) -> str:
    """
    Get the quote card for a stock: price, percent change, market cap,
    P/E ratio, company name and logo.

    Market cap is reconciled against shares outstanding x price, because
    providers do not say whether their figure is in dollars, millions or
    billions. market_cap.method tells how it was resolved:
    matched-to-reference (confident), reference-fallback, heuristic-bucket
    (a guess, present it as approximate), reference-only or unavailable.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, MSFT)

    Returns:
        JSON with the quote card, including market_cap.short_form (e.g. "$2.98T")
    """
    result = await quote_card(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool(name="copy_quote")
async def copy_quote_text(symbol: str) -> str:
    """
    Get the quote card as plain text for the clipboard.

    Reuses the last card loaded with get_quote when it is still cached.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with a "text" field holding Symbol/Price/Market Cap/P/E Ratio/Change lines
    """
    result = await copy_quote(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool(name="export_quote_csv")
async def export_quote(symbol: str) -> str:
    """
    Export the quote card as CSV.

    Reuses the last card loaded with get_quote when it is still cached.

    Args:
        symbol: Stock ticker symbol

    Returns:
        JSON with filename ({SYMBOL}_data.csv) and csv text
    """
    result = await export_quote_csv(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


@mcp.tool(name="resolve_market_cap")
def reconcile_market_cap(
    reported: float | None,
    shares_outstanding: float | None = None,
    price: float | None = None,
) -> str:
    """
    Resolve the real magnitude of a market-cap figure of unknown units.

    Args:
        reported: Market cap as reported (raw dollars, thousands, millions, billions...)
        shares_outstanding: Raw share count (optional, enables cross-checking)
        price: Current share price (optional, enables cross-checking)

    Returns:
        JSON with canonical_value, chosen_scale, method, confident and short_form
    """
    result = resolve_market_cap(
        reported=reported,
        shares_outstanding=shares_outstanding,
        price=price,
    )
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# RESOURCES
# ============================================================================


@mcp.resource("quote://{symbol}")
def get_cached_quote(symbol: str) -> str:
    """
    Get the cached quote card as CSV.

    Must call get_quote first to populate the cache.

    Args:
        symbol: Stock ticker symbol

    Returns:
        CSV with Symbol,Price,Market Cap,P/E Ratio,Change columns
    """
    try:
        csv_text, _ = read_quote_resource(symbol)
        return csv_text
    except ResourceNotFoundError:
        return f"Resource not cached. Call get_quote('{symbol}') first."
    except ValueError as e:
        return f"Error: {e}"


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Quote Card MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    # Reject bad MCAP_* settings at startup
    default_config()
    try:
        mcp.run()
    finally:
        asyncio.run(shutdown_executor())


if __name__ == "__main__":
    main()
