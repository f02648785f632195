"""Validation utilities and parameter classes."""

import re
from dataclasses import dataclass

# Letters, digits and the punctuation exchanges use in tickers (BRK.B, ^GSPC, EURUSD=X)
_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.\-^=]{1,15}$")


def normalize_symbol(symbol: str) -> str:
    """
    Normalize a ticker symbol: uppercase, strip whitespace, validate.

    Raises:
        ValueError: If the symbol is empty or contains unexpected characters
    """
    if not isinstance(symbol, str):
        raise ValueError(f"Invalid symbol: {symbol!r}")
    normalized = symbol.upper().strip()
    if not _SYMBOL_PATTERN.match(normalized):
        raise ValueError(f"Invalid symbol: {symbol!r}")
    return normalized


@dataclass(frozen=True)
class QuoteParams:
    """Immutable lookup parameters. Used for cache key + fetch."""

    symbol: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

    def to_uri(self) -> str:
        """Canonical URI for caching."""
        return f"quote://{self.symbol}"

    def csv_filename(self) -> str:
        return f"{self.symbol}_data.csv"
