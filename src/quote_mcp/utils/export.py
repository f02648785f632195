"""Clipboard text and CSV rendering for quote cards."""

from typing import Any

import pandas as pd

from quote_mcp.utils.formatting import format_percent_change, format_price, format_ratio

# Column order is part of the export format
CSV_COLUMNS = ["Symbol", "Price", "Market Cap", "P/E Ratio", "Change"]


def card_to_row(card: dict[str, Any]) -> dict[str, str]:
    """
    Render a quote card into display strings, keyed by CSV column.

    Args:
        card: Quote card as built by quote_mcp.tools.quote_card.build_quote_card

    Returns:
        Ordered dict of column -> rendered value
    """
    market_cap = card.get("market_cap") or {}
    return {
        "Symbol": card.get("symbol") or "",
        "Price": format_price(card.get("price")),
        "Market Cap": market_cap.get("short_form") or "N/A",
        "P/E Ratio": format_ratio(card.get("pe_ratio")),
        "Change": format_percent_change(card.get("percent_change")),
    }


def card_to_text(card: dict[str, Any]) -> str:
    """Plain-text block for the clipboard, one "Label: value" line per column."""
    row = card_to_row(card)
    return "\n".join(f"{column}: {row[column]}" for column in CSV_COLUMNS)


def card_to_dataframe(card: dict[str, Any]) -> pd.DataFrame:
    return pd.DataFrame([card_to_row(card)], columns=CSV_COLUMNS)


def card_to_csv(card: dict[str, Any]) -> str:
    """Convert to CSV string (header + one row) for export and the cache resource."""
    return card_to_dataframe(card).to_csv(index=False, lineterminator="\n")
