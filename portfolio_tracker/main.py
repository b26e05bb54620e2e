"""Application entrypoint for the portfolio tracker MCP server."""

from __future__ import annotations

import asyncio
import logging
import os

from mcp.server.fastmcp import FastMCP
from starlette.responses import JSONResponse, Response

from portfolio_tracker.config.settings import get_settings
from portfolio_tracker.resources.portfolio_resources import register_portfolio_resources
from portfolio_tracker.runtime.monitoring import ServerMetrics
from portfolio_tracker.tools.registry import build_tool_services, register_all_tools

LOGGER = logging.getLogger(__name__)


def resolve_transport_mode(configured_mode: str) -> str:
    if os.getenv("RENDER") and configured_mode == "stdio":
        return "http"
    if configured_mode in {"stdio", "http"}:
        return configured_mode
    if os.getenv("RENDER") or os.getenv("PORT"):
        return "http"
    return "stdio"


def resolve_http_transport(configured_transport: str) -> str:
    if configured_transport in {"sse", "streamable"}:
        return configured_transport
    return "sse"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    server_metrics = ServerMetrics()
    services = build_tool_services(settings, metrics=server_metrics)
    mcp = FastMCP(
        name=settings.app_name,
        host=settings.host,
        port=settings.port,
        streamable_http_path=settings.mcp_path,
    )
    register_all_tools(mcp, services)
    register_portfolio_resources(mcp, services)
    resolved_mode = resolve_transport_mode(settings.transport_mode)
    resolved_http_transport = resolve_http_transport(settings.http_transport)

    @mcp.custom_route(settings.health_path, methods=["GET"])
    async def health_check(_: object) -> Response:
        health = server_metrics.snapshot()
        return JSONResponse(
            {
                "status": "ok",
                "service": settings.app_name,
                "mode": resolved_mode,
                "positions": len(services.portfolio.store),
                "total_requests": health.total_requests,
                "error_rate": health.error_rate,
                "uptime_seconds": round(health.uptime_seconds, 3),
            }
        )

    if not settings.alphavantage_api_key:
        LOGGER.warning(
            "ALPHAVANTAGE_API_KEY is not set; every quote request will fail with MISSING_CREDENTIAL."
        )
    try:
        if resolved_mode == "stdio":
            await mcp.run_stdio_async()
        elif resolved_http_transport == "streamable":
            await mcp.run_streamable_http_async()
        else:
            await mcp.run_sse_async()
    finally:
        await services.portfolio.close()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
