"""Pydantic data models shared across all components."""

from core.models.events import Announcement, MarketEvent, MarketPressure
from core.models.market import (
    INDEX_FUND_TYPE,
    MIN_PRICE,
    STOCK_TYPE,
    Holding,
    IndexFund,
    Instrument,
    PricePoint,
)

__all__ = [
    "Announcement",
    "MarketEvent",
    "MarketPressure",
    "INDEX_FUND_TYPE",
    "MIN_PRICE",
    "STOCK_TYPE",
    "Holding",
    "IndexFund",
    "Instrument",
    "PricePoint",
]
