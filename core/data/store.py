"""In-memory market store -- the single owner of instrument state.

The price engine reads fresh lists and writes whole replacement lists.
Player trades only move the tradable float (`shares_outstanding`).
"""

from __future__ import annotations

import logging

from core.models.market import IndexFund, Instrument

logger = logging.getLogger(__name__)


class InMemoryMarketStore:
    """Holds the current stocks and index funds for one game session.

    Implements the MarketStore protocol.
    """

    def __init__(
        self,
        fields: list[str],
        stocks: list[Instrument] | None = None,
        index_funds: list[IndexFund] | None = None,
    ) -> None:
        self._fields = list(fields)
        self._stocks: list[Instrument] = list(stocks or [])
        self._index_funds: list[IndexFund] = list(index_funds or [])

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_fields(self) -> list[str]:
        return list(self._fields)

    def get_stocks(self) -> list[Instrument]:
        return self._stocks

    def get_index_funds(self) -> list[IndexFund]:
        return self._index_funds

    def get_stock(self, name: str) -> Instrument | None:
        return next((s for s in self._stocks if s.name == name), None)

    def get_index_fund(self, name: str) -> IndexFund | None:
        return next((f for f in self._index_funds if f.name == name), None)

    def get_instrument(self, name: str) -> Instrument | None:
        """Stocks are searched first, then index funds."""
        return self.get_stock(name) or self.get_index_fund(name)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def set_stocks(self, stocks: list[Instrument]) -> None:
        self._stocks = list(stocks)

    def set_index_funds(self, funds: list[IndexFund]) -> None:
        self._index_funds = list(funds)

    # ------------------------------------------------------------------
    # Player float bookkeeping
    # ------------------------------------------------------------------

    def purchase(self, name: str, shares: float) -> Instrument | None:
        """Remove purchased shares from the tradable float."""
        return self._adjust_float(name, -self._validate_shares(shares))

    def sell(self, name: str, shares: float) -> Instrument | None:
        """Return sold shares to the tradable float."""
        return self._adjust_float(name, self._validate_shares(shares))

    @staticmethod
    def _validate_shares(shares: float) -> float:
        if shares < 0:
            raise ValueError(f"Share quantity must not be negative, got {shares}")
        return shares

    def _adjust_float(self, name: str, delta: float) -> Instrument | None:
        for collection in (self._stocks, self._index_funds):
            for i, item in enumerate(collection):
                if item.name != name:
                    continue
                updated = item.model_copy(
                    update={"shares_outstanding": max(0.0, item.shares_outstanding + delta)}
                )
                collection[i] = updated
                logger.debug(
                    "Float for %s: %.2f -> %.2f",
                    name, item.shares_outstanding, updated.shares_outstanding,
                )
                return updated

        logger.warning("Unknown instrument '%s', float unchanged", name)
        return None
