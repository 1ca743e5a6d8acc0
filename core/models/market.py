"""Market instrument models -- stocks, index funds, and their price history."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

STOCK_TYPE = "Stock"
INDEX_FUND_TYPE = "Index Fund"

# Floor applied to every instrument price
MIN_PRICE = 0.01


class PricePoint(BaseModel):
    """One closing price per simulated day.

    The last point of a history is rewritten on every minute tick and
    becomes final once the next day is appended.
    """

    day: int
    price: float


class Instrument(BaseModel):
    """A tradable instrument in the synthetic market.

    `name` is the identity key and never changes after generation.
    `trend` is the last realized percentage change, derived on every tick.
    """

    name: str
    price: float = Field(ge=0.0)
    price_history: list[PricePoint] = Field(default_factory=list)
    shares_outstanding: float = Field(default=0.0, ge=0.0)
    field: str
    trend: float = 0.0
    risk_rating: float = 0.05
    type: Literal["Stock", "Index Fund"] = STOCK_TYPE

    @property
    def last_day(self) -> int:
        """Day index of the most recent history entry."""
        if not self.price_history:
            return 0
        return self.price_history[-1].day

    @property
    def market_cap(self) -> float:
        return self.price * self.shares_outstanding

    def recent_prices(self, window: int) -> list[float]:
        """Return up to `window` most recent history prices, oldest first."""
        return [point.price for point in self.price_history[-window:]]


class Holding(BaseModel):
    """A fixed constituent position inside an index fund basket."""

    name: str
    shares_held: float


class IndexFund(Instrument):
    """An instrument whose price is derived from a frozen basket of stocks."""

    field: str = INDEX_FUND_TYPE
    type: Literal["Stock", "Index Fund"] = INDEX_FUND_TYPE
    risk_rating: float = 0.01
    stocks_held: list[Holding] = Field(default_factory=list)
