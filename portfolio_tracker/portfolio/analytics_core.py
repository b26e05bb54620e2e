"""Per-position and aggregate profit/loss derivation."""

from __future__ import annotations

import math
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from portfolio_tracker.portfolio.models import PortfolioSummary, PortfolioTotals, Position, PositionRow
from portfolio_tracker.providers.models import Quote

POSITION_COLUMNS = ["Id", "Symbol", "Quantity", "Purchase_Price"]


def build_position_frame(positions: Iterable[Position]) -> pd.DataFrame:
    records = [
        {
            "Id": position.id,
            "Symbol": position.symbol,
            "Quantity": position.quantity,
            "Purchase_Price": position.purchase_price,
        }
        for position in positions
    ]
    return pd.DataFrame(records, columns=POSITION_COLUMNS)


def enrich_with_market_values(frame: pd.DataFrame, quotes: Mapping[str, Quote]) -> pd.DataFrame:
    """Add price, value and P/L columns; unpriced rows carry NaN."""
    data = frame.copy()
    live_prices = {symbol: quote.price for symbol, quote in quotes.items()}
    previous_closes = {
        symbol: quote.previous_close for symbol, quote in quotes.items() if quote.previous_close is not None
    }
    data["Live_Price"] = data["Symbol"].map(live_prices).astype(float)
    data["Previous_Close"] = data["Symbol"].map(previous_closes).astype(float)
    data["Invested_Value"] = data["Quantity"].astype(float) * data["Purchase_Price"].astype(float)
    data["Market_Value"] = data["Quantity"].astype(float) * data["Live_Price"]
    data["PnL"] = data["Market_Value"] - data["Invested_Value"]
    data["Status"] = np.select(
        [data["PnL"].isna(), data["PnL"] > 0, data["PnL"] < 0],
        ["unknown", "profit", "loss"],
        default="even",
    )
    data["Day_Delta"] = data["Live_Price"] - data["Previous_Close"]
    return data


def calculate_totals(frame: pd.DataFrame) -> PortfolioTotals:
    invested = float(frame["Invested_Value"].sum())
    market_value = float(frame["Market_Value"].sum())
    pnl = market_value - invested
    return PortfolioTotals(
        invested=invested,
        market_value=market_value,
        pnl=pnl,
        pnl_pct=(pnl / invested) if invested > 0 else None,
        priced_count=int(frame["Live_Price"].notna().sum()),
        positions=int(len(frame)),
    )


def _optional(value: object) -> float | None:
    if value is None:
        return None
    out = float(value)  # type: ignore[arg-type]
    return None if math.isnan(out) else out


def summarize_portfolio(positions: Iterable[Position], quotes: Mapping[str, Quote]) -> PortfolioSummary:
    enriched = enrich_with_market_values(build_position_frame(positions), quotes)
    rows = [
        PositionRow(
            id=str(row.Id),
            symbol=str(row.Symbol),
            quantity=int(row.Quantity),
            purchase_price=float(row.Purchase_Price),
            invested_value=float(row.Invested_Value),
            current_price=_optional(row.Live_Price),
            previous_close=_optional(row.Previous_Close),
            market_value=_optional(row.Market_Value),
            pnl=_optional(row.PnL),
            status=str(row.Status),  # type: ignore[arg-type]
            day_delta=_optional(row.Day_Delta),
        )
        for row in enriched.itertuples(index=False)
    ]
    return PortfolioSummary(rows=rows, totals=calculate_totals(enriched))
