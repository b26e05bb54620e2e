"""Position input validation logic."""

from __future__ import annotations

import math
import re

from portfolio_tracker.portfolio.models import ValidationIssue
from portfolio_tracker.providers.models import normalize_symbol

# AAPL, BRK.B, ^GSPC, EURUSD=X, RDS-A
SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.^=\-]{1,15}$")


def is_valid_symbol_format(symbol: str) -> bool:
    return bool(SYMBOL_PATTERN.match(symbol))


def coerce_quantity(quantity: object) -> int | None:
    """Return ``quantity`` as a positive int, or None if it is not one."""
    if isinstance(quantity, bool):
        return None
    if isinstance(quantity, int):
        if quantity <= 0:
            return None
        # Values feed float arithmetic in P/L derivation.
        try:
            float(quantity)
        except OverflowError:
            return None
        return quantity
    try:
        value = float(quantity)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value) or value <= 0 or not value.is_integer():
        return None
    return int(value)


def coerce_price(price: object) -> float | None:
    if isinstance(price, bool):
        return None
    try:
        value = float(price)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def validate_position_input(
    symbol: object,
    quantity: object,
    purchase_price: object,
) -> tuple[str, int, float] | ValidationIssue:
    """Normalize form input, or return the first issue found.

    Checks run in a fixed order: symbol presence, quantity, price, then
    symbol format.
    """
    clean_symbol = normalize_symbol(symbol)
    if not clean_symbol:
        return ValidationIssue(field="symbol", code="EMPTY_SYMBOL", message="Symbol is required.")

    clean_quantity = coerce_quantity(quantity)
    if clean_quantity is None:
        return ValidationIssue(
            field="quantity",
            code="INVALID_QUANTITY",
            message="Quantity must be a positive integer.",
        )

    clean_price = coerce_price(purchase_price)
    if clean_price is None:
        return ValidationIssue(
            field="purchase_price",
            code="INVALID_PRICE",
            message="Purchase price must be a positive number.",
        )

    if not is_valid_symbol_format(clean_symbol):
        return ValidationIssue(field="symbol", code="INVALID_FORMAT", message="Invalid symbol format.")

    return clean_symbol, clean_quantity, clean_price
