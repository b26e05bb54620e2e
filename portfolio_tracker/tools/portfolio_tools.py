"""Portfolio-domain MCP tools."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from portfolio_tracker.providers.http import ProviderError
from portfolio_tracker.providers.models import normalize_symbol
from portfolio_tracker.runtime.monitoring import log_tool_event
from portfolio_tracker.runtime.response import error_response, success_response

if TYPE_CHECKING:
    from portfolio_tracker.tools.registry import ToolServices


def register_portfolio_tools(mcp: FastMCP, services: ToolServices) -> None:
    def _finish(tool: str, symbol: str | None, started: float, success: bool) -> None:
        latency_ms = (time.perf_counter() - started) * 1000.0
        log_tool_event(tool=tool, symbol=symbol, latency_ms=latency_ms, success=success)
        if services.metrics is not None:
            services.metrics.record(latency_ms=latency_ms, success=success)

    @mcp.tool(description="Add a stock position after validating the symbol exists.")
    async def add_position(symbol: str, quantity: float, purchase_price: float) -> str:
        started = time.perf_counter()
        result = await services.portfolio.add_position(symbol, quantity, purchase_price)
        _finish("add_position", normalize_symbol(symbol) or None, started, result.ok)
        if not result.ok:
            message = f'"{normalize_symbol(symbol)}" was not added. {result.reason or ""}'.strip()
            return error_response(result.code or "REJECTED", message)
        return success_response({"position": result.position})

    @mcp.tool(description="Remove a position by its id. Unknown ids are a no-op.")
    async def remove_position(position_id: str) -> str:
        started = time.perf_counter()
        removed = services.portfolio.remove_position(position_id)
        _finish("remove_position", None, started, True)
        return success_response({"removed": removed, "position_id": position_id})

    @mcp.tool(description="Remove every position from the portfolio.")
    async def clear_positions() -> str:
        started = time.perf_counter()
        services.portfolio.clear_positions()
        _finish("clear_positions", None, started, True)
        return success_response({"cleared": True})

    @mcp.tool(description="List positions with latest quotes, per-row P/L and portfolio totals.")
    async def list_positions() -> str:
        started = time.perf_counter()
        snapshot = services.portfolio.snapshot()
        _finish("list_positions", None, started, True)
        return success_response(snapshot)

    @mcp.tool(description="Refresh quotes for every symbol, one request at a time.")
    async def refresh_quotes() -> str:
        started = time.perf_counter()
        queued = services.portfolio.refresh_quotes()
        _finish("refresh_quotes", None, started, True)
        return success_response({"queued": queued})

    @mcp.tool(description="Get the latest quote for a single ticker symbol.")
    async def get_quote(symbol: str) -> str:
        started = time.perf_counter()
        try:
            quote = await services.portfolio.quote_client.fetch_quote(symbol)
        except ProviderError as error:
            _finish("get_quote", normalize_symbol(symbol) or None, started, False)
            return error_response(error.code, error.message)
        _finish("get_quote", quote.symbol, started, True)
        return success_response(quote)
