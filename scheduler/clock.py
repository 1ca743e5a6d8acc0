"""Game clock -- synchronous minute ticker that fires market callbacks.

The clock owns no timer: a caller advances it explicitly, one simulated
minute per tick(), or jumps whole days with skip_days(). Callbacks run
in registration order, and a tick may not start while another is running.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24

MinuteCallback = Callable[[int], None]
DayCallback = Callable[[int], None]
SkipCallback = Callable[[int], None]
LimitCallback = Callable[[], None]


class GameClock:
    """Simulated day/hour/minute clock with a hard time limit.

    Usage:
        clock = GameClock(start_day=29, time_limit_days=60)
        clock.on_minute(lambda minute: price_engine.fluctuate_by_minute())
        clock.on_day(lambda day: event_engine.pass_day())
        clock.advance(MINUTES_PER_HOUR * HOURS_PER_DAY)
    """

    def __init__(self, start_day: int = 29, time_limit_days: int = 60) -> None:
        self.day = start_day
        self.hour = 0
        self.minute = 0
        self.time_limit_days = time_limit_days
        self.ended = False
        self.minutes_elapsed = 0

        self._minute_callbacks: list[MinuteCallback] = []
        self._hour_callbacks: list[MinuteCallback] = []
        self._day_callbacks: list[DayCallback] = []
        self._skip_callbacks: list[SkipCallback] = []
        self._limit_callbacks: list[LimitCallback] = []
        self._ticking = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def on_minute(self, callback: MinuteCallback) -> None:
        self._minute_callbacks.append(callback)

    def on_hour(self, callback: MinuteCallback) -> None:
        self._hour_callbacks.append(callback)

    def on_day(self, callback: DayCallback) -> None:
        self._day_callbacks.append(callback)

    def on_skip(self, callback: SkipCallback) -> None:
        self._skip_callbacks.append(callback)

    def on_time_limit(self, callback: LimitCallback) -> None:
        self._limit_callbacks.append(callback)

    # ------------------------------------------------------------------
    # Advancing time
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Advance one simulated minute."""
        if self.ended:
            return
        with self._exclusive():
            self.minute += 1
            self.minutes_elapsed += 1
            if self.minute >= MINUTES_PER_HOUR:
                self.minute = 0
                self.hour += 1
            self._fire(self._minute_callbacks, self.minutes_elapsed)

            if self.minute == 0:
                if self.hour >= HOURS_PER_DAY:
                    self.hour = 0
                    self.day += 1
                    if self.day >= self.time_limit_days:
                        self._end()
                        return
                    self._fire(self._hour_callbacks, self.hour)
                    self._fire(self._day_callbacks, self.day)
                else:
                    self._fire(self._hour_callbacks, self.hour)

    def advance(self, minutes: int) -> None:
        for _ in range(minutes):
            if self.ended:
                break
            self.tick()

    def skip_days(self, days: int) -> None:
        """Jump ahead whole days; skip callbacks receive the day count.

        Raises ValueError for anything but a positive integer.
        """
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValueError(f"Days to skip must be a positive integer, got {days!r}")
        if self.ended:
            return

        with self._exclusive():
            self._fire(self._skip_callbacks, days)
            self.day += days
            logger.info("Skipped %d day(s), now day %d", days, self.day)
            if self.day >= self.time_limit_days:
                self._end()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fire(self, callbacks: list, *args) -> None:
        for callback in callbacks:
            callback(*args)

    def _end(self) -> None:
        self.ended = True
        logger.info("Time limit reached on day %d", self.day)
        for callback in self._limit_callbacks:
            callback()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self._ticking:
            raise RuntimeError("Clock tick started while a previous tick is still running")
        self._ticking = True
        try:
            yield
        finally:
            self._ticking = False

    @property
    def label(self) -> str:
        return f"Day {self.day} {self.hour:02d}:{self.minute:02d}"

