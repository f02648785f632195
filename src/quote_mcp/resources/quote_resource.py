"""Quote snapshot resource handler."""

from quote_mcp.data.cache import SnapshotCache, get_snapshot_cache
from quote_mcp.utils.export import card_to_csv


class ResourceNotFoundError(Exception):
    """Resource not found in cache."""

    pass


def read_quote_resource(symbol: str, cache: SnapshotCache | None = None) -> tuple[str, str]:
    """
    Serve the cached quote card as CSV. Never fetches live.

    Args:
        symbol: Ticker symbol (e.g., AAPL for quote://AAPL)

    Returns:
        Tuple of (csv_text, mime_type)

    Raises:
        ResourceNotFoundError: If no card is cached for the symbol
        ValueError: If the symbol is invalid
    """
    card = (cache or get_snapshot_cache()).get(symbol)

    if card is None:
        raise ResourceNotFoundError(f"Resource not cached. Call get_quote first: quote://{symbol}")

    return card_to_csv(card), "text/csv"
