"""Typed portfolio models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

AddRejectionCode = Literal[
    "EMPTY_SYMBOL",
    "INVALID_QUANTITY",
    "INVALID_PRICE",
    "INVALID_FORMAT",
    "DUPLICATE_SYMBOL",
    "NO_PRICE_DATA",
    "MALFORMED_PRICE",
    "PROVIDER_ERROR",
    "VALIDATION_UNAVAILABLE",
]
RowStatus = Literal["unknown", "profit", "loss", "even"]


@dataclass(frozen=True)
class Position:
    id: str
    symbol: str
    quantity: int
    purchase_price: float
    created_at: float


@dataclass
class ValidationIssue:
    field: str
    code: AddRejectionCode
    message: str


@dataclass(frozen=True)
class AddResult:
    ok: bool
    position: Position | None = None
    code: AddRejectionCode | None = None
    reason: str | None = None

    @classmethod
    def accepted(cls, position: Position) -> AddResult:
        return cls(ok=True, position=position)

    @classmethod
    def rejected(cls, code: AddRejectionCode, reason: str) -> AddResult:
        return cls(ok=False, code=code, reason=reason)


@dataclass
class PositionRow:
    id: str
    symbol: str
    quantity: int
    purchase_price: float
    invested_value: float
    current_price: float | None
    previous_close: float | None
    market_value: float | None
    pnl: float | None
    status: RowStatus
    day_delta: float | None


@dataclass
class PortfolioTotals:
    invested: float
    market_value: float
    pnl: float
    pnl_pct: float | None
    priced_count: int
    positions: int


@dataclass
class PortfolioSummary:
    rows: list[PositionRow]
    totals: PortfolioTotals
