"""Quote card tools."""

from quote_mcp.tools.export import copy_quote, export_quote_csv
from quote_mcp.tools.market_cap import resolve_market_cap
from quote_mcp.tools.quote_card import build_quote_card, quote_card

__all__ = [
    "build_quote_card",
    "copy_quote",
    "export_quote_csv",
    "quote_card",
    "resolve_market_cap",
]
