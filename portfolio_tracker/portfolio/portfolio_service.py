"""Portfolio tracker orchestration service."""

from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any

from portfolio_tracker.portfolio.analytics_core import summarize_portfolio
from portfolio_tracker.portfolio.models import AddResult
from portfolio_tracker.portfolio.store import PortfolioStore
from portfolio_tracker.providers.alpha_vantage import AlphaVantageClient
from portfolio_tracker.services.quote_poller import QuotePoller


class PortfolioService:
    """Keeps the poller's symbol set in step with the store.

    Every store mutation re-syncs the poller, which starts a fresh batch
    only when the set of distinct symbols actually changed.
    """

    def __init__(
        self,
        quote_client: AlphaVantageClient,
        store: PortfolioStore | None = None,
        poller: QuotePoller | None = None,
    ) -> None:
        self.quote_client = quote_client
        self.store = store if store is not None else PortfolioStore(quote_client=quote_client)
        self.poller = poller if poller is not None else QuotePoller(quote_client)
        self.store.subscribe(self._on_store_changed)

    def _on_store_changed(self) -> None:
        self.poller.sync(self.store.symbols())

    async def add_position(self, symbol: str, quantity: float, purchase_price: float) -> AddResult:
        return await self.store.add(symbol, quantity, purchase_price)

    def remove_position(self, position_id: str) -> bool:
        return self.store.remove(position_id)

    def clear_positions(self) -> None:
        self.store.clear()

    def refresh_quotes(self) -> int:
        """Start a manual refresh; returns the number of symbols queued."""
        symbols = self.store.symbols()
        self.poller.refresh(symbols)
        return len(symbols)

    async def close(self) -> None:
        self.store.unsubscribe(self._on_store_changed)
        await self.poller.close()

    def snapshot(self) -> dict[str, Any]:
        summary = summarize_portfolio(self.store.positions, self.poller.quotes())
        rows: list[dict[str, Any]] = []
        for row in summary.rows:
            state = self.poller.state(row.symbol)
            payload = asdict(row)
            payload["quote_status"] = state.status
            payload["last_refreshed"] = state.quote.last_refreshed if state.quote else None
            if state.error:
                payload["error"] = state.error
                payload["error_code"] = state.error_code
            rows.append(payload)
        return {
            "rows": rows,
            "totals": asdict(summary.totals),
            "refreshing": self.poller.running,
            "generated_at": int(time.time()),
        }
