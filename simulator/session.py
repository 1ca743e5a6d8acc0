"""Simulation session -- wires the market, both engines, and the game clock.

Clock callbacks, in order:
1. minute -> minute price update (every minute)
2. minute -> mild event roll (every `mild_event_interval_minutes`)
3. day    -> day price update, then event aging/extreme roll
4. skip   -> n-day price update, then n event days
"""

from __future__ import annotations

import logging

from core.announcements import AnnouncementFeed
from core.config import AppConfig
from core.data.store import InMemoryMarketStore
from core.noise import RandomSource
from engine.events import EventEngine
from engine.generator import STOCK_FIELDS, generate_index_funds, generate_market_stocks
from engine.pricing import MarketPriceEngine
from engine.templates import load_catalog
from scheduler.clock import HOURS_PER_DAY, MINUTES_PER_HOUR, GameClock

logger = logging.getLogger(__name__)


class MarketSimulation:
    """One single-player market session.

    Usage:
        sim = MarketSimulation.create(config)
        sim.run_days(5)
        sim.store.get_stocks()
    """

    def __init__(
        self,
        store: InMemoryMarketStore,
        feed: AnnouncementFeed,
        event_engine: EventEngine,
        price_engine: MarketPriceEngine,
        clock: GameClock,
        mild_event_interval_minutes: int = 240,
    ) -> None:
        self.store = store
        self.feed = feed
        self.event_engine = event_engine
        self.price_engine = price_engine
        self.clock = clock
        self._mild_interval = mild_event_interval_minutes
        self.days_elapsed = 0

        clock.on_minute(self._on_minute)
        clock.on_day(self._on_day)
        clock.on_skip(self._on_skip)
        clock.on_time_limit(self._on_time_limit)

    @classmethod
    def create(cls, config: AppConfig, rng: RandomSource | None = None) -> MarketSimulation:
        """Generate a fresh market universe and wire every component."""
        rng = rng or RandomSource(config.seed)

        stocks = generate_market_stocks(config.market.stock_count, rng, config.market.history_days)
        funds = generate_index_funds(stocks, config.market.index_fund_count, rng)
        store = InMemoryMarketStore(STOCK_FIELDS, stocks, funds)

        feed = AnnouncementFeed(max_items=config.events.announcement_history)
        catalog = load_catalog(config.events.catalog_path)

        event_engine = EventEngine(catalog, announcer=feed, rng=rng)
        event_engine.attach_market(store)

        price_engine = MarketPriceEngine(store, event_engine, rng)
        clock = GameClock(config.clock.start_day, config.clock.time_limit_days)

        logger.info(
            "Created market session (seed=%s, %d stocks, %d funds)",
            rng.seed, len(stocks), len(funds),
        )
        return cls(
            store=store,
            feed=feed,
            event_engine=event_engine,
            price_engine=price_engine,
            clock=clock,
            mild_event_interval_minutes=config.events.mild_event_interval_minutes,
        )

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------

    def run_days(self, days: int) -> None:
        """Tick minute by minute through `days` simulated days."""
        self.clock.advance(days * HOURS_PER_DAY * MINUTES_PER_HOUR)

    def skip_days(self, days: int) -> None:
        self.clock.skip_days(days)

    @property
    def ended(self) -> bool:
        return self.clock.ended

    # ------------------------------------------------------------------
    # Clock callbacks
    # ------------------------------------------------------------------

    def _on_minute(self, minutes_elapsed: int) -> None:
        self.price_engine.fluctuate_by_minute()
        if minutes_elapsed % self._mild_interval == 0:
            self.event_engine.pass_minute()

    def _on_day(self, day: int) -> None:
        self.price_engine.fluctuate_by_days(1)
        self.event_engine.pass_day()
        self.days_elapsed += 1
        logger.debug("Day %d closed with %d active event(s)", day, len(self.event_engine.get_active_events()))

    def _on_skip(self, days: int) -> None:
        self.price_engine.fluctuate_by_days(days)
        self.event_engine.pass_days(days)
        self.days_elapsed += days

    def _on_time_limit(self) -> None:
        logger.info("Market closed for good after %d simulated day(s)", self.days_elapsed)
