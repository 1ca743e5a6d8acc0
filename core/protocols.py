"""Core protocols -- the ports the simulation engines talk through.

The engines import these protocols, never concrete implementations.
All protocols use Python's structural subtyping (typing.Protocol):
if your class has the right methods, it implements the protocol.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.models.events import Announcement, MarketEvent, MarketPressure
from core.models.market import IndexFund, Instrument


# ---------------------------------------------------------------------------
# 1. MarketStore -- owner of the instrument universe
# ---------------------------------------------------------------------------

@runtime_checkable
class MarketStore(Protocol):
    """Holds the current stocks and index funds.

    The engines never keep their own copy of instrument state: they read
    fresh lists on every tick and write whole replacement lists back.
    Default implementation: InMemoryMarketStore.
    """

    def get_fields(self) -> list[str]:
        """Sector fields known to the market."""
        ...

    def get_stocks(self) -> list[Instrument]:
        ...

    def get_index_funds(self) -> list[IndexFund]:
        ...

    def set_stocks(self, stocks: list[Instrument]) -> None:
        ...

    def set_index_funds(self, funds: list[IndexFund]) -> None:
        ...

    def get_instrument(self, name: str) -> Instrument | None:
        """Look up a stock or fund by name; None if unknown."""
        ...


# ---------------------------------------------------------------------------
# 2. AnnouncementSink -- fire-and-forget news feed
# ---------------------------------------------------------------------------

@runtime_checkable
class AnnouncementSink(Protocol):
    """Receives announcements for spawned events and player actions.

    No acknowledgment, no backpressure. Implementations must not raise.
    """

    def announce(self, announcement: Announcement) -> None:
        ...


# ---------------------------------------------------------------------------
# 3. PressureSource -- live pressure and events for the price engine
# ---------------------------------------------------------------------------

@runtime_checkable
class PressureSource(Protocol):
    """Exposes the event engine's live state to the price engine.

    Default implementation: EventEngine.
    """

    def get_active_events(self) -> list[MarketEvent]:
        ...

    def get_field_pressures(self) -> dict[str, MarketPressure]:
        ...

    def get_stock_pressures(self) -> dict[str, MarketPressure]:
        ...
