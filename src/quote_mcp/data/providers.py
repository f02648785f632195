"""Async quote providers with bounded concurrency, retry logic and singleflight."""

from __future__ import annotations

import asyncio
import logging
import os
import random
from collections.abc import Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, TypeVar

import requests
import yfinance as yf
from requests.exceptions import HTTPError

from quote_mcp.data.records import MetricsRecord, ProfileRecord, QuoteRecord
from quote_mcp.utils.validators import normalize_symbol

logger = logging.getLogger(__name__)

# Bounded concurrency for blocking provider calls
_max_workers = int(os.environ.get("QUOTE_MAX_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)
_fetch_semaphore = asyncio.Semaphore(_max_workers)

# Shutdown coordination
shutdown_event = asyncio.Event()

T = TypeVar("T")

RECORD_KINDS = ("quote", "profile", "metrics")


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


class ProviderNotConfiguredError(Exception):
    """Raised when the selected provider is missing required settings."""

    pass


class ProviderRetryError(Exception):
    """Raised when a provider call fails after all retries."""

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


@dataclass(frozen=True)
class ProviderSettings:
    """Explicit provider configuration. Built once, passed to the provider."""

    provider: str = "yfinance"
    api_key: str | None = field(default=None, repr=False)
    base_url: str = "https://finnhub.io/api/v1"
    timeout: float = 10.0
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds

    @classmethod
    def from_env(cls) -> ProviderSettings:
        return cls(
            provider=os.environ.get("QUOTE_PROVIDER", "yfinance").lower().strip(),
            api_key=os.environ.get("FINNHUB_API_KEY") or None,
            base_url=os.environ.get("FINNHUB_BASE_URL", "https://finnhub.io/api/v1").rstrip("/"),
            timeout=float(os.environ.get("QUOTE_HTTP_TIMEOUT", "10")),
            max_retries=int(os.environ.get("QUOTE_MAX_RETRIES", "3")),
            base_delay=float(os.environ.get("QUOTE_BASE_DELAY", "1.0")),
            max_delay=float(os.environ.get("QUOTE_MAX_DELAY", "30.0")),
        )


def _is_retryable_error(error: Exception, max_retries: int) -> tuple[bool, int]:
    """
    Check if an error is retryable (transient).

    Returns:
        Tuple of (is_retryable, max_retries_for_this_error)
    """
    if isinstance(error, (ValueError, ProviderNotConfiguredError)):
        return (False, 0)

    if (
        isinstance(error, HTTPError)
        and hasattr(error, "response")
        and error.response is not None
    ):
        status_code = error.response.status_code
        if status_code == 401:
            # yfinance "Invalid Crumb" recovers after one retry; a bad Finnhub token never does
            return (True, 1)
        if status_code == 403:
            return (False, 0)
        if status_code == 429 or 500 <= status_code < 600:
            return (True, max_retries)

    if isinstance(error, (requests.ConnectionError, requests.Timeout)):
        return (True, max_retries)

    error_str = str(error).lower()
    if "401" in error_str or "invalid crumb" in error_str:
        return (True, 1)

    retryable_patterns = [
        "rate limit",
        "too many requests",
        "connection",
        "timeout",
        "temporary",
    ]
    if any(pattern in error_str for pattern in retryable_patterns):
        return (True, max_retries)

    return (False, 0)


def _calculate_backoff(attempt: int, settings: ProviderSettings) -> float:
    """Calculate delay with exponential backoff and jitter."""
    delay = settings.base_delay * (2**attempt)
    # Jitter (+/-25%)
    delay = delay + delay * 0.25 * (2 * random.random() - 1)
    return min(delay, settings.max_delay)


@dataclass
class RetryResult:
    """Result of a retry operation with provenance tracking."""

    result: Any
    attempts: int
    total_backoff_seconds: float
    source: str

    def to_provenance(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "attempts": self.attempts,
            "total_backoff_seconds": self.total_backoff_seconds,
        }


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    settings: ProviderSettings,
    source: str,
) -> RetryResult:
    """
    Execute a blocking function on the executor with retry logic.

    Raises:
        ProviderRetryError: If all retries exhausted
        ServerShuttingDownError: If server is shutting down
    """
    last_error: Exception | None = None
    total_backoff = 0.0

    for attempt in range(settings.max_retries + 1):
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(_executor, sync_func)
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
                source=source,
            )
        except Exception as e:
            last_error = e
            is_retryable, error_max_retries = _is_retryable_error(e, settings.max_retries)
            if not is_retryable:
                raise

            effective_max_retries = min(settings.max_retries, error_max_retries)
            if attempt >= effective_max_retries:
                logger.warning(
                    f"{operation_name}: Failed after {attempt + 1} attempts "
                    f"(limit={effective_max_retries + 1}). Last error: {e}"
                )
                raise ProviderRetryError(
                    f"Failed after {attempt + 1} attempts: {e}",
                    last_error=last_error,
                ) from e

            delay = _calculate_backoff(attempt, settings)
            total_backoff += delay
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise ProviderRetryError(
        f"Failed after {settings.max_retries + 1} attempts",
        last_error=last_error,
    )


class QuoteProvider:
    """
    Base class for market-data providers.

    Subclasses implement _load(kind, symbol), a blocking call returning the
    raw payload for one record kind, and _build(kind, payload). Concurrent
    requests for the same (kind, symbol) share a single in-flight call.
    """

    name = "base"

    def __init__(self, settings: ProviderSettings | None = None):
        self.settings = settings or ProviderSettings()
        self._singleflight: dict[tuple[str, str], asyncio.Task[RetryResult]] = {}
        self._singleflight_lock = asyncio.Lock()

    def _load(self, kind: str, symbol: str) -> Any:
        raise NotImplementedError

    def _build(self, kind: str, payload: Any) -> Any:
        raise NotImplementedError

    def _flight_key(self, kind: str, symbol: str) -> tuple[str, str]:
        return (kind, symbol)

    async def _fetch_raw(self, kind: str, symbol: str) -> RetryResult:
        async with _fetch_semaphore:
            return await _retry_with_backoff(
                f"{self.name}.{kind}({symbol})",
                lambda: self._load(kind, symbol),
                self.settings,
                source=self.name,
            )

    async def _with_singleflight(
        self,
        key: tuple[str, str],
        factory: Callable[[], Awaitable[RetryResult]],
    ) -> tuple[RetryResult, bool]:
        """
        Deduplicate concurrent calls sharing a key.

        Cleanup happens in the caller's finally block and only removes the
        entry if it is still this task. Joiners shield the shared task so a
        cancelled waiter does not cancel the fetch for everyone else.

        Returns:
            Tuple of (retry_result, singleflight_joined)
        """
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        joined = False
        async with self._singleflight_lock:
            task = self._singleflight.get(key)
            if task is None:
                task = asyncio.ensure_future(factory())
                self._singleflight[key] = task
                logger.debug(f"{self.name}{key}: created singleflight task")
            else:
                joined = True
                logger.debug(f"{self.name}{key}: joining existing singleflight")

        try:
            if joined:
                result = await asyncio.shield(task)
            else:
                result = await task
            return result, joined
        finally:
            async with self._singleflight_lock:
                if self._singleflight.get(key) is task:
                    self._singleflight.pop(key, None)

    async def fetch(self, kind: str, symbol: str) -> tuple[Any, dict[str, Any]]:
        """
        Fetch one record kind for a symbol.

        Args:
            kind: "quote", "profile" or "metrics"
            symbol: Ticker symbol

        Returns:
            Tuple of (record, provenance dict)

        Raises:
            ValueError: If symbol or kind is invalid
            ProviderRetryError: If all retries exhausted
            ServerShuttingDownError: If server is shutting down
        """
        if kind not in RECORD_KINDS:
            raise ValueError(f"Unknown record kind: {kind}")
        normalized_symbol = normalize_symbol(symbol)
        flight_kind, _ = self._flight_key(kind, normalized_symbol)

        retry_result, joined = await self._with_singleflight(
            self._flight_key(kind, normalized_symbol),
            lambda: self._fetch_raw(flight_kind, normalized_symbol),
        )
        provenance = retry_result.to_provenance()
        provenance["singleflight_joined"] = joined
        return self._build(kind, retry_result.result), provenance

    async def fetch_quote(self, symbol: str) -> tuple[QuoteRecord, dict[str, Any]]:
        return await self.fetch("quote", symbol)

    async def fetch_profile(self, symbol: str) -> tuple[ProfileRecord, dict[str, Any]]:
        return await self.fetch("profile", symbol)

    async def fetch_metrics(self, symbol: str) -> tuple[MetricsRecord, dict[str, Any]]:
        return await self.fetch("metrics", symbol)

    def close(self) -> None:
        pass


class YFinanceProvider(QuoteProvider):
    """All three records come from one Ticker.info payload, fetched once per symbol."""

    name = "yfinance"

    def _flight_key(self, kind: str, symbol: str) -> tuple[str, str]:
        return ("info", symbol)

    def _load(self, kind: str, symbol: str) -> dict[str, Any]:
        try:
            info = yf.Ticker(symbol).info
        except HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise ValueError(f"Invalid symbol: {symbol}") from e
            raise
        # Unknown tickers come back as a near-empty dict or a 404
        if not info or not any(
            info.get(k) is not None
            for k in ("currentPrice", "regularMarketPrice", "marketCap", "shortName", "longName")
        ):
            raise ValueError(f"Invalid symbol: {symbol}")
        return info

    def _build(self, kind: str, payload: Any) -> Any:
        if kind == "quote":
            return QuoteRecord.from_yfinance_info(payload)
        if kind == "profile":
            return ProfileRecord.from_yfinance_info(payload)
        return MetricsRecord.from_yfinance_info(payload)


class FinnhubProvider(QuoteProvider):
    """Finnhub REST API: /quote, /stock/profile2 and /stock/metric."""

    name = "finnhub"

    _ENDPOINTS: dict[str, tuple[str, dict[str, str]]] = {
        "quote": ("/quote", {}),
        "profile": ("/stock/profile2", {}),
        "metrics": ("/stock/metric", {"metric": "all"}),
    }

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        session: requests.Session | None = None,
    ):
        super().__init__(settings)
        if not self.settings.api_key:
            raise ProviderNotConfiguredError(
                "Finnhub provider selected but FINNHUB_API_KEY is not set"
            )
        self._session = session or requests.Session()

    def _load(self, kind: str, symbol: str) -> dict[str, Any]:
        path, extra = self._ENDPOINTS[kind]
        params = {"symbol": symbol, "token": self.settings.api_key, **extra}
        response = self._session.get(
            f"{self.settings.base_url}{path}",
            params=params,
            timeout=self.settings.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected {kind} payload for {symbol}")
        # Unknown tickers: all-zero quote, empty profile
        if kind == "quote" and not payload.get("c") and not payload.get("t"):
            raise ValueError(f"Invalid symbol: {symbol}")
        return payload

    def _build(self, kind: str, payload: Any) -> Any:
        if kind == "quote":
            return QuoteRecord.from_finnhub(payload)
        if kind == "profile":
            return ProfileRecord.from_finnhub(payload)
        return MetricsRecord.from_finnhub(payload)

    def close(self) -> None:
        self._session.close()


PROVIDERS: dict[str, type[QuoteProvider]] = {
    YFinanceProvider.name: YFinanceProvider,
    FinnhubProvider.name: FinnhubProvider,
}


def get_provider(settings: ProviderSettings | None = None) -> QuoteProvider:
    """
    Instantiate the provider named in settings.

    Raises:
        ValueError: If the provider name is unknown
        ProviderNotConfiguredError: If required settings are missing
    """
    settings = settings or ProviderSettings.from_env()
    provider_cls = PROVIDERS.get(settings.provider)
    if provider_cls is None:
        raise ValueError(
            f"Unknown provider '{settings.provider}'. Must be one of: {sorted(PROVIDERS)}"
        )
    return provider_cls(settings)


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
