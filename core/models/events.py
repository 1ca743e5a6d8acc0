"""Event models -- market pressure, spawned market events, and announcements."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MarketPressure(BaseModel):
    """Accumulated bias for one sector field or one instrument.

    Values are raw accumulations and may sit outside the bounds the price
    engine clamps them to when aggregating.
    """

    drift: float = 0.0
    turbulence: float = 1.0
    sentiment: float = 0.0

    @classmethod
    def neutral(cls) -> MarketPressure:
        return cls(drift=0.0, turbulence=1.0, sentiment=0.0)

    @property
    def stress(self) -> float:
        """Combined stress score; positive means the target is under stress."""
        return self.drift + self.sentiment + (self.turbulence - 1) * 10

    def apply(self, event: MarketEvent) -> None:
        """Accumulate an event's deltas into this pressure record."""
        self.drift += event.drift_delta
        self.turbulence *= 1 + event.turbulence_delta
        self.sentiment += event.sentiment_delta


class MarketEvent(BaseModel):
    """A macro event spawned from a template.

    `affected_stocks` is filled in at spawn time. `duration_days` of None
    means the event never expires on its own.
    """

    title: str
    description: str = ""
    event_type: str = "General"

    affected_fields: list[str] = Field(default_factory=list)
    affected_stocks: list[str] = Field(default_factory=list)

    drift_delta: float = 0.0
    turbulence_delta: float = 0.0
    sentiment_delta: float = 0.0

    duration_days: int | None = None

    def targets(self, name: str, field: str) -> bool:
        """True if this event touches the given instrument name or field."""
        return field in self.affected_fields or name in self.affected_stocks

    @property
    def expired(self) -> bool:
        return self.duration_days is not None and self.duration_days <= 0


class Announcement(BaseModel):
    """A notification pushed to the announcement feed."""

    title: str
    description: str
    title_color: str = "#ffffff"
    description_color: str = "#ffffff"
    border_color: str = "#ffffff"
