"""Data layer for fetching quote records and caching quote cards."""

from quote_mcp.data.cache import SnapshotCache, get_snapshot_cache
from quote_mcp.data.providers import (
    PROVIDERS,
    FinnhubProvider,
    ProviderNotConfiguredError,
    ProviderRetryError,
    ProviderSettings,
    QuoteProvider,
    ServerShuttingDownError,
    YFinanceProvider,
    get_provider,
    shutdown_executor,
)
from quote_mcp.data.records import MetricsRecord, ProfileRecord, QuoteRecord

__all__ = [
    # Cache
    "SnapshotCache",
    "get_snapshot_cache",
    # Providers
    "PROVIDERS",
    "FinnhubProvider",
    "ProviderNotConfiguredError",
    "ProviderRetryError",
    "ProviderSettings",
    "QuoteProvider",
    "ServerShuttingDownError",
    "YFinanceProvider",
    "get_provider",
    "shutdown_executor",
    # Records
    "MetricsRecord",
    "ProfileRecord",
    "QuoteRecord",
]
