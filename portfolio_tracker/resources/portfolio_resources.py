"""Portfolio resource definitions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

if TYPE_CHECKING:
    from portfolio_tracker.tools.registry import ToolServices

CURRENT_PORTFOLIO_URI = "portfolio://current"


def register_portfolio_resources(mcp: FastMCP, services: "ToolServices") -> None:
    @mcp.resource(
        CURRENT_PORTFOLIO_URI,
        name="current-portfolio",
        title="Current Portfolio Snapshot",
        description="Positions, latest quotes, per-row P/L and totals.",
        mime_type="application/json",
    )
    def current_portfolio_resource() -> str:
        return json.dumps(services.portfolio.snapshot(), ensure_ascii=True)
