"""Cache of the last resolved quote card per symbol."""

import os
from datetime import datetime, timezone
from typing import Any

import diskcache

from quote_mcp.utils.normalize import sanitize_nan_inf, snapshot_hash
from quote_mcp.utils.validators import QuoteParams


class SnapshotCache:
    """
    Stores the last successfully resolved quote card for each symbol.

    Copy and export read from here so they show exactly what the card showed.
    The resolver never reads the cache.
    """

    def __init__(self, cache_dir: str | None = None, default_ttl: int | None = None):
        if cache_dir is None:
            cache_dir = os.environ.get("CACHE_DIR", ".cache/quotes")
        self.cache: diskcache.Cache = diskcache.Cache(cache_dir)
        if default_ttl is None:
            default_ttl = int(os.environ.get("CACHE_TTL", "300"))  # 5 minutes
        self._default_ttl = default_ttl

    def store(self, card: dict[str, Any], ttl: int | None = None) -> str:
        """
        Store a quote card, return its canonical URI.

        Args:
            card: Quote card (must carry "symbol")
            ttl: Cache TTL in seconds (default: CACHE_TTL)

        Returns:
            Canonical URI for the cached card
        """
        uri = QuoteParams(card["symbol"]).to_uri()
        clean = sanitize_nan_inf(card)

        entry: dict[str, Any] = {
            "card": clean,
            "hash": snapshot_hash(clean),
            "stored_at": datetime.now(timezone.utc).isoformat(),
        }

        expire = ttl if ttl is not None else self._default_ttl
        self.cache.set(uri, entry, expire=expire)
        return uri

    def get_entry(self, symbol: str) -> dict[str, Any] | None:
        return self.cache.get(QuoteParams(symbol).to_uri())

    def get(self, symbol: str) -> dict[str, Any] | None:
        """
        Get the cached quote card for a symbol.

        Returns:
            Card dict or None if not cached (or expired)
        """
        entry = self.get_entry(symbol)
        if not entry:
            return None
        return entry["card"]

    def get_metadata(self, symbol: str) -> dict[str, Any] | None:
        """Get hash and store time without the card body."""
        entry = self.get_entry(symbol)
        if not entry:
            return None
        return {
            "uri": QuoteParams(symbol).to_uri(),
            "hash": entry["hash"],
            "stored_at": entry["stored_at"],
        }

    def exists(self, symbol: str) -> bool:
        return QuoteParams(symbol).to_uri() in self.cache

    def clear(self) -> None:
        """Clear all cached cards."""
        self.cache.clear()

    def close(self) -> None:
        self.cache.close()


_snapshot_cache: SnapshotCache | None = None


def get_snapshot_cache() -> SnapshotCache:
    """Process-wide cache, created on first use."""
    global _snapshot_cache
    if _snapshot_cache is None:
        _snapshot_cache = SnapshotCache()
    return _snapshot_cache
