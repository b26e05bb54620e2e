"""Sequential, paced quote refreshes with batch-level cancellation."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Literal

from portfolio_tracker.providers.alpha_vantage import AlphaVantageClient
from portfolio_tracker.providers.http import ProviderError
from portfolio_tracker.providers.models import Quote

LOGGER = logging.getLogger(__name__)
DEFAULT_PACING_SECONDS = 1.0

QuoteStatus = Literal["idle", "loading", "ready", "failed"]


@dataclass(frozen=True)
class QuoteState:
    status: QuoteStatus = "idle"
    quote: Quote | None = None
    error_code: str | None = None
    error: str | None = None
    updated_at: float | None = None


class QuotePoller:
    """Refreshes one symbol at a time; a new batch supersedes the old one.

    Each batch owns an ``asyncio.Event``. Starting a new batch sets the
    previous event, and the old loop stops at its next check without writing
    any more state.
    """

    def __init__(
        self,
        quote_client: AlphaVantageClient,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._quote_client = quote_client
        self.pacing_seconds = max(0.0, pacing_seconds)
        self._clock = clock
        self._states: dict[str, QuoteState] = {}
        self._symbols: tuple[str, ...] = ()
        self._cancel_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self.batches_started = 0

    @property
    def states(self) -> dict[str, QuoteState]:
        return dict(self._states)

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def state(self, symbol: str) -> QuoteState:
        return self._states.get(symbol, QuoteState())

    def quotes(self) -> dict[str, Quote]:
        return {symbol: state.quote for symbol, state in self._states.items() if state.quote is not None}

    def sync(self, symbols: Iterable[str]) -> asyncio.Task[None] | None:
        """Track a new symbol set; refresh only when the set changed."""
        distinct = tuple(dict.fromkeys(symbols))
        if set(distinct) == set(self._symbols):
            self._symbols = distinct
            return None
        self._symbols = distinct
        for stale in set(self._states) - set(distinct):
            del self._states[stale]
        if not distinct:
            self.cancel()
            return None
        return self.refresh()

    def refresh(self, symbols: Iterable[str] | None = None) -> asyncio.Task[None] | None:
        """Cancel any in-flight batch and start a new one on the running loop."""
        if symbols is not None:
            self._symbols = tuple(dict.fromkeys(symbols))
        batch = list(self._symbols)
        self.cancel()
        if not batch:
            return None
        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        self.batches_started += 1
        LOGGER.info("quote batch started: batch=%s symbols=%s", self.batches_started, ",".join(batch))
        self._task = asyncio.get_running_loop().create_task(self._run_batch(batch, cancel_event))
        return self._task

    def cancel(self) -> None:
        if self._cancel_event is not None:
            self._cancel_event.set()
        self._cancel_event = None

    async def close(self) -> None:
        self.cancel()
        task, self._task = self._task, None
        if task is not None and not task.done():
            await task

    async def wait(self) -> None:
        """Wait for the current batch, if any, to finish."""
        if self._task is not None:
            await self._task

    async def _run_batch(self, symbols: list[str], cancel_event: asyncio.Event) -> None:
        for symbol in symbols:
            if cancel_event.is_set():
                break
            self._mark_loading(symbol)
            if await self._pace(cancel_event):
                break
            try:
                quote = await self._quote_client.fetch_quote(symbol, cancel_event)
            except ProviderError as error:
                if error.code == "CANCELED" or cancel_event.is_set():
                    break
                self._mark_failed(symbol, error.code, error.message)
                continue
            except Exception:
                if cancel_event.is_set():
                    break
                LOGGER.exception("quote refresh unexpected failure: symbol=%s", symbol)
                self._mark_failed(symbol, "UNEXPECTED", "Failed to fetch quote")
                continue
            if cancel_event.is_set():
                break
            self._mark_ready(symbol, quote)
        else:
            LOGGER.info("quote batch complete: symbols=%s", ",".join(symbols))
            return
        LOGGER.info("quote batch canceled: symbols=%s", ",".join(symbols))

    async def _pace(self, cancel_event: asyncio.Event) -> bool:
        """Sleep for the pacing delay; return True if canceled meanwhile."""
        if self.pacing_seconds <= 0:
            await asyncio.sleep(0)
            return cancel_event.is_set()
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.pacing_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def _mark_loading(self, symbol: str) -> None:
        previous = self._states.get(symbol, QuoteState())
        self._states[symbol] = replace(previous, status="loading", error_code=None, error=None)

    def _mark_ready(self, symbol: str, quote: Quote) -> None:
        self._states[symbol] = QuoteState(status="ready", quote=quote, updated_at=self._clock())

    def _mark_failed(self, symbol: str, code: str, message: str) -> None:
        previous = self._states.get(symbol, QuoteState())
        self._states[symbol] = replace(
            previous,
            status="failed",
            error_code=code,
            error=message,
            updated_at=self._clock(),
        )
