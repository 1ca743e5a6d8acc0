"""Market statistics -- pure Python math over instrument price history.

Summarizes how each instrument moved over a session for the CLI report.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.models.market import Instrument


@dataclass
class InstrumentStats:
    """Price statistics for one instrument over its recorded history."""

    name: str
    type: str
    field: str
    start_price: float
    end_price: float
    total_return: float
    daily_volatility: float
    max_drawdown: float
    best_day: float
    worst_day: float


def calculate_instrument_stats(instrument: Instrument, window: int | None = None) -> InstrumentStats:
    """Statistics over the last `window` history entries (all when None)."""
    history = instrument.price_history[-window:] if window else instrument.price_history
    prices = [p.price for p in history] or [instrument.price]

    returns = _daily_returns(prices)
    start, end = prices[0], prices[-1]

    return InstrumentStats(
        name=instrument.name,
        type=instrument.type,
        field=instrument.field,
        start_price=start,
        end_price=end,
        total_return=(end - start) / start if start > 0 else 0.0,
        daily_volatility=_stdev(returns),
        max_drawdown=_max_drawdown(prices),
        best_day=max(returns, default=0.0),
        worst_day=min(returns, default=0.0),
    )


def summarize_market(instruments: list[Instrument], window: int | None = None) -> dict:
    """Market-wide summary: average return, breadth, and extremes."""
    if not instruments:
        return _empty_summary()

    stats = [calculate_instrument_stats(i, window) for i in instruments]
    advancers = [s for s in stats if s.total_return > 0]
    decliners = [s for s in stats if s.total_return < 0]
    best = max(stats, key=lambda s: s.total_return)
    worst = min(stats, key=lambda s: s.total_return)

    return {
        "instruments": len(stats),
        "average_return": sum(s.total_return for s in stats) / len(stats),
        "average_volatility": sum(s.daily_volatility for s in stats) / len(stats),
        "advancers": len(advancers),
        "decliners": len(decliners),
        "unchanged": len(stats) - len(advancers) - len(decliners),
        "best": best.name,
        "best_return": best.total_return,
        "worst": worst.name,
        "worst_return": worst.total_return,
    }


def top_movers(instruments: list[Instrument], count: int = 5, window: int | None = None) -> list[InstrumentStats]:
    """Instruments with the largest absolute return, biggest first."""
    stats = [calculate_instrument_stats(i, window) for i in instruments]
    stats.sort(key=lambda s: abs(s.total_return), reverse=True)
    return stats[:count]


def _empty_summary() -> dict:
    return {
        "instruments": 0, "average_return": 0.0, "average_volatility": 0.0,
        "advancers": 0, "decliners": 0, "unchanged": 0,
        "best": None, "best_return": 0.0, "worst": None, "worst_return": 0.0,
    }


def _daily_returns(prices: list[float]) -> list[float]:
    if len(prices) < 2:
        return []
    return [
        (prices[i] - prices[i - 1]) / prices[i - 1]
        for i in range(1, len(prices))
        if prices[i - 1] > 0
    ]


def _max_drawdown(prices: list[float]) -> float:
    """Largest peak-to-trough decline as a fraction of the peak."""
    if not prices:
        return 0.0

    peak = prices[0]
    max_dd = 0.0
    for value in prices:
        if value > peak:
            peak = value
        elif peak > 0:
            max_dd = max(max_dd, (peak - value) / peak)
    return max_dd


def _stdev(values: list[float]) -> float:
    """Sample standard deviation."""
    if len(values) < 2:
        return 0.0
    avg = sum(values) / len(values)
    variance = sum((x - avg) ** 2 for x in values) / (len(values) - 1)
    return math.sqrt(variance)
