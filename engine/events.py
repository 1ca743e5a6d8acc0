"""Pressure and event engine -- spawns market events and accumulates pressure.

State lives in a PressureState owned by the EventEngine. The spawn,
assignment, and lifecycle steps are plain functions over that state so
they can be exercised on their own.

Tick cadence is driven from outside:
- pass_minute(): chance to spawn a mild event
- pass_day():    age events, chance to spawn an extreme event, drop expired
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from core.models.events import Announcement, MarketEvent, MarketPressure
from core.models.market import Instrument
from core.noise import RandomSource
from core.protocols import AnnouncementSink, MarketStore
from engine.templates import EventCatalog

logger = logging.getLogger(__name__)

BASE_SPAWN_CHANCE = 0.4
SPAWN_CHANCE_PER_ACTIVE_EVENT = 0.05
MIN_SPAWN_CHANCE = 0.05

MIN_AFFECTED_STOCKS = 1
MAX_AFFECTED_STOCKS = 5

BULLISH_COLOR = "#04d569"
BEARISH_COLOR = "#e2522e"
COLOR_JITTER = 30


class PressureState(BaseModel):
    """Mutable pressure maps plus the list of live events.

    Accessors hand out live references; the price engine reads them on
    every tick.
    """

    field_pressures: dict[str, MarketPressure] = Field(default_factory=dict)
    stock_pressures: dict[str, MarketPressure] = Field(default_factory=dict)
    active_events: list[MarketEvent] = Field(default_factory=list)

    @classmethod
    def neutral(cls, fields: list[str], stock_names: list[str]) -> PressureState:
        return cls(
            field_pressures={f: MarketPressure.neutral() for f in fields},
            stock_pressures={n: MarketPressure.neutral() for n in stock_names},
        )


# ---------------------------------------------------------------------------
# Spawn policy
# ---------------------------------------------------------------------------

def spawn_chance(active_count: int) -> float:
    """More live events suppress new ones, down to a floor."""
    return max(MIN_SPAWN_CHANCE, BASE_SPAWN_CHANCE - SPAWN_CHANCE_PER_ACTIVE_EVENT * active_count)


def stressed_fields(field_pressures: dict[str, MarketPressure]) -> set[str]:
    return {field for field, p in field_pressures.items() if p.stress > 0}


def select_template(
    templates: list[MarketEvent],
    field_pressures: dict[str, MarketPressure],
    rng: RandomSource,
) -> MarketEvent:
    """Pick a template, favoring ones that touch a stressed field.

    Falls back to the whole pool when nothing is stressed or no template
    touches a stressed field.
    """
    stressed = stressed_fields(field_pressures)
    relevant = [t for t in templates if stressed.intersection(t.affected_fields)]
    return rng.pick(relevant or templates)


def stock_weight(pressure: MarketPressure | None) -> float:
    """Sampling weight for an instrument: base 1 plus any positive stress."""
    if pressure is None:
        return 1.0
    return 1.0 + max(0.0, pressure.stress)


def assign_stocks(
    event: MarketEvent,
    stocks: list[Instrument],
    stock_pressures: dict[str, MarketPressure],
    rng: RandomSource,
) -> list[str]:
    """Choose 1-5 distinct instruments for an event, weighted by stress.

    Candidates are stocks in the event's fields, or every stock when none
    match.
    """
    candidates = [s for s in stocks if s.field in event.affected_fields] or list(stocks)
    if not candidates:
        return []

    weights = [stock_weight(stock_pressures.get(s.name)) for s in candidates]
    count = min(len(candidates), rng.randint(MIN_AFFECTED_STOCKS, MAX_AFFECTED_STOCKS))
    return rng.pick_multiple_weighted([s.name for s in candidates], weights, count)


def apply_event_pressures(event: MarketEvent, state: PressureState) -> None:
    """Accumulate an event's deltas into every matching pressure record.

    Values are stored raw; clamping happens when the price engine
    aggregates them.
    """
    for field in event.affected_fields:
        pressure = state.field_pressures.get(field)
        if pressure is not None:
            pressure.apply(event)

    for name in event.affected_stocks:
        pressure = state.stock_pressures.get(name)
        if pressure is not None:
            pressure.apply(event)


def age_events(events: list[MarketEvent], days: int = 1) -> None:
    """Count down the remaining lifetime of every event that has one."""
    for event in events:
        if event.duration_days is not None:
            event.duration_days -= days


def prune_expired(events: list[MarketEvent]) -> list[MarketEvent]:
    return [event for event in events if not event.expired]


def build_announcement(event: MarketEvent, rng: RandomSource) -> Announcement:
    base = BULLISH_COLOR if event.sentiment_delta > 0 else BEARISH_COLOR
    return Announcement(
        title=f"Market Event [{event.event_type}]",
        description=f"{event.title} -- {event.description}",
        title_color=rng.shift_color(base, COLOR_JITTER),
        description_color=rng.shift_color(base, COLOR_JITTER),
        border_color=rng.shift_color(base, COLOR_JITTER),
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class EventEngine:
    """Owns pressure state and drives the event lifecycle.

    Usage:
        engine = EventEngine(catalog, announcer=feed, rng=rng)
        engine.attach_market(store)
        engine.pass_minute()
        engine.pass_days(3)

    Pressure written by an event is never reversed when the event expires;
    only its ongoing per-tick contribution stops.
    """

    def __init__(
        self,
        catalog: EventCatalog,
        announcer: AnnouncementSink | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        self._catalog = catalog
        self._announcer = announcer
        self._rng = rng or RandomSource()
        self._market: MarketStore | None = None
        self.state = PressureState()

    def attach_market(self, market: MarketStore) -> None:
        """Reset pressures to neutral for every known field and stock."""
        self._market = market
        self.state = PressureState.neutral(
            market.get_fields(),
            [s.name for s in market.get_stocks()],
        )
        logger.info(
            "Event engine attached: %d fields, %d stocks",
            len(self.state.field_pressures), len(self.state.stock_pressures),
        )

    # ------------------------------------------------------------------
    # Read accessors (live references)
    # ------------------------------------------------------------------

    def get_active_events(self) -> list[MarketEvent]:
        return self.state.active_events

    def get_field_pressures(self) -> dict[str, MarketPressure]:
        return self.state.field_pressures

    def get_stock_pressures(self) -> dict[str, MarketPressure]:
        return self.state.stock_pressures

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def pass_minute(self) -> MarketEvent | None:
        return self._spawn_by_chance(self._catalog.mild)

    def pass_day(self) -> MarketEvent | None:
        age_events(self.state.active_events, 1)
        spawned = self._spawn_by_chance(self._catalog.extreme)
        before = len(self.state.active_events)
        self.state.active_events = prune_expired(self.state.active_events)
        expired = before - len(self.state.active_events)
        if expired:
            logger.debug("%d event(s) expired", expired)
        return spawned

    def pass_days(self, days: int) -> None:
        for _ in range(days):
            self.pass_day()

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def _spawn_by_chance(self, templates: list[MarketEvent]) -> MarketEvent | None:
        if not templates:
            return None
        if self._rng.random() <= spawn_chance(len(self.state.active_events)):
            return self.spawn_event(templates)
        return None

    def spawn_event(self, templates: list[MarketEvent]) -> MarketEvent:
        """Spawn one event from a template pool and apply its pressure."""
        template = select_template(templates, self.state.field_pressures, self._rng)
        event = self._catalog.spawn(template)

        stocks = self._market.get_stocks() if self._market is not None else []
        event.affected_stocks = assign_stocks(event, stocks, self.state.stock_pressures, self._rng)

        apply_event_pressures(event, self.state)
        self.state.active_events.append(event)

        logger.info(
            "Spawned event '%s' (%s) fields=%s stocks=%s duration=%s",
            event.title, event.event_type, event.affected_fields,
            event.affected_stocks, event.duration_days,
        )

        if self._announcer is not None:
            self._announcer.announce(build_announcement(event, self._rng))

        return event
