"""Service wiring shared by tools and resources."""

from __future__ import annotations

from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from portfolio_tracker.config.settings import Settings
from portfolio_tracker.portfolio.portfolio_service import PortfolioService
from portfolio_tracker.portfolio.store import PortfolioStore
from portfolio_tracker.providers.alpha_vantage import AlphaVantageClient
from portfolio_tracker.runtime.monitoring import ServerMetrics
from portfolio_tracker.services.quote_poller import QuotePoller
from portfolio_tracker.tools.portfolio_tools import register_portfolio_tools


@dataclass
class ToolServices:
    portfolio: PortfolioService
    metrics: ServerMetrics | None = None


def build_tool_services(settings: Settings, metrics: ServerMetrics | None = None) -> ToolServices:
    quote_client = AlphaVantageClient(
        settings.alphavantage_api_key,
        timeout_seconds=settings.request_timeout_seconds,
        cache_ttl_seconds=settings.cache_ttl_quote_seconds,
    )
    store = PortfolioStore(quote_client=quote_client if settings.validate_symbol_exists else None)
    poller = QuotePoller(quote_client, pacing_seconds=settings.quote_pacing_seconds)
    portfolio = PortfolioService(quote_client, store=store, poller=poller)
    return ToolServices(portfolio=portfolio, metrics=metrics)


def register_all_tools(mcp: FastMCP, services: ToolServices) -> None:
    register_portfolio_tools(mcp, services)
