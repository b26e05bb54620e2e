"""In-memory ordered collection of portfolio positions."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from portfolio_tracker.portfolio.models import AddResult, Position, ValidationIssue
from portfolio_tracker.portfolio.validation import validate_position_input
from portfolio_tracker.providers.alpha_vantage import AlphaVantageClient
from portfolio_tracker.providers.http import ProviderError

LOGGER = logging.getLogger(__name__)
# Provider answers that mean the ticker itself is bad rather than unverifiable.
SYMBOL_REJECTION_CODES = {"NO_PRICE_DATA", "MALFORMED_PRICE", "PROVIDER_ERROR"}

Listener = Callable[[], None]


class PortfolioStore:
    """Owns positions; the only writer is this class's own methods.

    When ``quote_client`` is given, ``add`` confirms the symbol exists before
    committing, and any failure to confirm blocks the add.
    """

    def __init__(
        self,
        quote_client: AlphaVantageClient | None = None,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._quote_client = quote_client
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._clock = clock
        self._positions: list[Position] = []
        self._listeners: list[Listener] = []

    @property
    def positions(self) -> tuple[Position, ...]:
        return tuple(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    def get(self, position_id: str) -> Position | None:
        for position in self._positions:
            if position.id == position_id:
                return position
        return None

    def symbols(self) -> list[str]:
        """Distinct symbols in first-seen order."""
        return list(dict.fromkeys(position.symbol for position in self._positions))

    def has_symbol(self, symbol: str) -> bool:
        return any(position.symbol == symbol for position in self._positions)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def add(self, symbol: object, quantity: object, purchase_price: object) -> AddResult:
        checked = validate_position_input(symbol, quantity, purchase_price)
        if isinstance(checked, ValidationIssue):
            LOGGER.info("position rejected: symbol=%s code=%s", symbol, checked.code)
            return AddResult.rejected(checked.code, checked.message)
        clean_symbol, clean_quantity, clean_price = checked

        duplicate = self._duplicate(clean_symbol)
        if duplicate is not None:
            return duplicate

        if self._quote_client is not None:
            rejection = await self._confirm_exists(self._quote_client, clean_symbol)
            if rejection is not None:
                return rejection
            # Another add for the same symbol may have landed while awaiting.
            duplicate = self._duplicate(clean_symbol)
            if duplicate is not None:
                return duplicate

        position = Position(
            id=self._id_factory(),
            symbol=clean_symbol,
            quantity=clean_quantity,
            purchase_price=clean_price,
            created_at=self._clock(),
        )
        self._positions.append(position)
        LOGGER.info(
            "position added: id=%s symbol=%s quantity=%s purchase_price=%s",
            position.id,
            position.symbol,
            position.quantity,
            position.purchase_price,
        )
        self._notify()
        return AddResult.accepted(position)

    def remove(self, position_id: str) -> bool:
        remaining = [position for position in self._positions if position.id != position_id]
        if len(remaining) == len(self._positions):
            return False
        self._positions = remaining
        LOGGER.info("position removed: id=%s", position_id)
        self._notify()
        return True

    def clear(self) -> None:
        if not self._positions:
            return
        self._positions = []
        LOGGER.info("positions cleared")
        self._notify()

    def _duplicate(self, symbol: str) -> AddResult | None:
        if not self.has_symbol(symbol):
            return None
        LOGGER.info("position rejected: symbol=%s code=DUPLICATE_SYMBOL", symbol)
        return AddResult.rejected("DUPLICATE_SYMBOL", f"{symbol} is already in your list.")

    async def _confirm_exists(self, quote_client: AlphaVantageClient, symbol: str) -> AddResult | None:
        try:
            await quote_client.fetch_quote(symbol)
        except ProviderError as error:
            LOGGER.info("symbol validation failed: symbol=%s code=%s", symbol, error.code)
            if error.code in SYMBOL_REJECTION_CODES:
                return AddResult.rejected(error.code, error.message)  # type: ignore[arg-type]
            return AddResult.rejected(
                "VALIDATION_UNAVAILABLE",
                f"Unable to validate symbol right now. {error.message}",
            )
        except Exception:
            LOGGER.exception("symbol validation unexpected failure: symbol=%s", symbol)
            return AddResult.rejected("VALIDATION_UNAVAILABLE", "Unable to validate symbol right now.")
        return None

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
