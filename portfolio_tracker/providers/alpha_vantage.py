"""Alpha Vantage GLOBAL_QUOTE client with a per-instance quote cache."""

from __future__ import annotations

import asyncio
import logging
import math
import time

from portfolio_tracker.cache.ttl_cache import TTLCache
from portfolio_tracker.providers.http import ProviderError, fetch_json
from portfolio_tracker.providers.models import Quote, normalize_symbol

ALPHA_VANTAGE_BASE_URL = "https://www.alphavantage.co/query"
PROVIDER = "alphavantage"
DEFAULT_QUOTE_TTL_SECONDS = 60
LOGGER = logging.getLogger(__name__)


def to_number(value: str | int | float | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(out):
        return None
    return out


def parse_alpha_error(data: dict) -> ProviderError | None:
    """Map Alpha Vantage's in-body status fields to a provider error, if any."""
    note = data.get("Note")
    if note:
        return ProviderError(PROVIDER, "RATE_LIMITED", "Rate limit reached. Please wait a bit and try again.")
    error_message = data.get("Error Message")
    if error_message:
        return ProviderError(PROVIDER, "PROVIDER_ERROR", f"Alpha Vantage error: {error_message}")
    information = data.get("Information")
    if information:
        return ProviderError(PROVIDER, "RATE_LIMITED", str(information))
    return None


def parse_global_quote(symbol: str, data: object) -> Quote:
    if isinstance(data, dict):
        error = parse_alpha_error(data)
        if error is not None:
            raise error
        quote = data.get("Global Quote")
    else:
        quote = None
    if not isinstance(quote, dict):
        quote = {}

    price_raw = quote.get("05. price")
    if price_raw is None or str(price_raw).strip() == "":
        raise ProviderError(PROVIDER, "NO_PRICE_DATA", "No price returned for this symbol.")
    price = to_number(price_raw)
    if price is None:
        raise ProviderError(PROVIDER, "MALFORMED_PRICE", "Invalid price format.")

    return Quote(
        symbol=symbol,
        price=price,
        previous_close=to_number(quote.get("08. previous close")),
        last_refreshed=quote.get("07. latest trading day") or None,
    )


def _canceled(symbol: str) -> ProviderError:
    return ProviderError(PROVIDER, "CANCELED", f"Quote request for {symbol} was canceled.")


class AlphaVantageClient:
    """Fetches GLOBAL_QUOTE prices and memoizes successes per symbol."""

    def __init__(
        self,
        api_key: str | None,
        timeout_seconds: float = 15.0,
        cache: TTLCache | None = None,
        cache_ttl_seconds: int = DEFAULT_QUOTE_TTL_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.cache_ttl_seconds = cache_ttl_seconds
        self.cache = cache if cache is not None else TTLCache(default_ttl_seconds=cache_ttl_seconds)

    async def fetch_quote(self, symbol: str, cancel_event: asyncio.Event | None = None) -> Quote:
        """Return the latest quote for ``symbol`` or raise ``ProviderError``.

        A cache hit skips the network entirely. Setting ``cancel_event`` while
        the request is in flight raises a ``CANCELED`` error and discards the
        response.
        """
        sym = normalize_symbol(symbol)
        if not sym:
            raise ProviderError(PROVIDER, "EMPTY_SYMBOL", "Empty symbol.")
        if not self.api_key:
            raise ProviderError(
                PROVIDER,
                "MISSING_CREDENTIAL",
                "Missing Alpha Vantage API key (ALPHAVANTAGE_API_KEY).",
            )

        cached = self.cache.get(sym)
        if isinstance(cached, Quote):
            LOGGER.debug("quote cache hit: symbol=%s", sym)
            return cached

        if cancel_event is not None and cancel_event.is_set():
            raise _canceled(sym)

        started = time.perf_counter()
        try:
            data = await self._request(sym, cancel_event)
            quote = parse_global_quote(sym, data)
        except ProviderError as error:
            if error.code != "CANCELED":
                LOGGER.warning(
                    "quote request failed: symbol=%s code=%s status=%s latency_ms=%s",
                    sym,
                    error.code,
                    error.status,
                    round((time.perf_counter() - started) * 1000, 2),
                )
            raise

        self.cache.set(sym, quote, ttl_seconds=self.cache_ttl_seconds)
        LOGGER.info(
            "quote request complete: symbol=%s price=%s latency_ms=%s",
            sym,
            quote.price,
            round((time.perf_counter() - started) * 1000, 2),
        )
        return quote

    async def _request(self, symbol: str, cancel_event: asyncio.Event | None) -> object:
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.api_key or ""}
        call = asyncio.to_thread(fetch_json, ALPHA_VANTAGE_BASE_URL, PROVIDER, params, self.timeout_seconds)
        if cancel_event is None:
            return await call

        request = asyncio.ensure_future(call)
        canceled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({request, canceled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (request, canceled):
                if not task.done():
                    task.cancel()

        if cancel_event.is_set():
            if request.done() and not request.cancelled():
                # Response arrived but belongs to a superseded batch.
                request.exception()
            raise _canceled(symbol)
        return request.result()
