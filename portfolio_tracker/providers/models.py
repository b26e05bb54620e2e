"""Normalized quote model returned by the quote client."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    previous_close: float | None = None
    last_refreshed: str | None = None


def normalize_symbol(symbol: object) -> str:
    """Upper-case and trim a user-supplied ticker; ``None`` becomes ``""``."""
    if symbol is None:
        return ""
    return str(symbol).strip().upper()
