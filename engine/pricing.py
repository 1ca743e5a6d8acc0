"""Price evolution engine -- minute and day price updates driven by pressure.

Both updates use a tempered stochastic log-return:

    r = bias + sigma * shock,   pct = expm1(r)

followed by a per-tick circuit breaker, a price floor, and rounding to
cents. The transformation functions are pure: they return new instrument
lists and never touch their inputs. MarketPriceEngine wires them to a
MarketStore and an EventEngine.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from core.models.events import MarketEvent, MarketPressure
from core.models.market import MIN_PRICE, IndexFund, Instrument, PricePoint
from core.noise import RandomSource, clamp
from core.protocols import MarketStore, PressureSource

logger = logging.getLogger(__name__)

TRADING_MINUTES_PER_DAY = 390

# Aggregate pressure bounds
TURBULENCE_BOUNDS = (0.5, 3.0)
DRIFT_BOUNDS = (-5.0, 5.0)
SENTIMENT_BOUNDS = (-5.0, 5.0)
EVENT_TURBULENCE_DELTA_BOUNDS = (-0.5, 1.0)

# Risk rating -> daily volatility
RISK_BOUNDS = (0.01, 0.5)
DAILY_SIGMA_RANGE = (0.01, 0.06)

# Minute tick
CLUSTER_WINDOW = 10
CLUSTER_FACTOR_BOUNDS = (0.8, 1.5)
MINUTE_SIGMA_BOUNDS = (0.0002, 0.03)
MINUTE_BIAS_CAP = 0.0005
REVERSION_WINDOW = 20
REVERSION_LIMIT = 0.05
REVERSION_STRENGTH = 0.05
MINUTE_CIRCUIT_BREAKER = 0.02

# Day tick
DAY_SIGMA_BOUNDS = (0.005, 0.12)
DAY_BIAS_CAP = 0.005
REGIME_BIASES = (0.0, 0.002, -0.002)
MOMENTUM_WINDOW = 3
MOMENTUM_LIMIT = 0.1
MOMENTUM_STRENGTH = 0.02
RECOVERY_WINDOW = 7
RECOVERY_LIMIT = 0.1
RECOVERY_STRENGTH = 0.05
DAY_CIRCUIT_BREAKER = 0.15

# Risk rating drift after large daily moves
BIG_MOVE = 0.10
RISK_UP = 1.03
RISK_DOWN = 0.98

# Index fund fee / tracking-error drag, day ticks only
FUND_FEE_BASE = 0.9999
FUND_FEE_NOISE = 0.0001

_NEUTRAL = MarketPressure.neutral()


# ---------------------------------------------------------------------------
# Pressure aggregation
# ---------------------------------------------------------------------------

def aggregate_pressures(
    instrument: Instrument,
    active_events: Sequence[MarketEvent],
    field_pressures: dict[str, MarketPressure],
    stock_pressures: dict[str, MarketPressure],
) -> MarketPressure:
    """Combine field, stock and live-event pressure into bounded values.

    Missing records count as neutral. Non-finite raw values fall back to
    neutral before clamping.
    """
    field_p = field_pressures.get(instrument.field) or _NEUTRAL
    stock_p = stock_pressures.get(instrument.name) or _NEUTRAL

    drift = field_p.drift + stock_p.drift
    turbulence = field_p.turbulence * stock_p.turbulence
    sentiment = field_p.sentiment + stock_p.sentiment

    for event in active_events:
        if not event.targets(instrument.name, instrument.field):
            continue
        drift += event.drift_delta
        turbulence *= 1 + clamp(event.turbulence_delta, *EVENT_TURBULENCE_DELTA_BOUNDS, fallback=0.0)
        sentiment += event.sentiment_delta

    return MarketPressure(
        drift=clamp(drift, *DRIFT_BOUNDS, fallback=0.0),
        turbulence=clamp(turbulence, *TURBULENCE_BOUNDS, fallback=1.0),
        sentiment=clamp(sentiment, *SENTIMENT_BOUNDS, fallback=0.0),
    )


# ---------------------------------------------------------------------------
# Shared terms
# ---------------------------------------------------------------------------

def base_daily_sigma(risk_rating: float, turbulence: float) -> float:
    """Map risk rating linearly onto the daily volatility range, scaled by turbulence."""
    lo, hi = RISK_BOUNDS
    normalized = clamp((risk_rating - lo) / (hi - lo), 0.0, 1.0, fallback=0.0)
    sigma_lo, sigma_hi = DAILY_SIGMA_RANGE
    return (sigma_lo + (sigma_hi - sigma_lo) * normalized) * turbulence


def squash(value: float, cap: float, scale: float = 5.0) -> float:
    """Saturating transform bounded to +/-cap."""
    return cap * math.tanh(value / scale)


def log_returns(prices: Sequence[float]) -> list[float]:
    return [
        math.log(b / a)
        for a, b in zip(prices, prices[1:])
        if a > 0 and b > 0
    ]


def clustering_factor(instrument: Instrument, daily_sigma: float) -> float:
    """Scale volatility up or down by how turbulent recent history has been."""
    returns = log_returns(instrument.recent_prices(CLUSTER_WINDOW + 1))
    if len(returns) < 2 or daily_sigma <= 0:
        return 1.0
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / (len(returns) - 1)
    return clamp(math.sqrt(variance) / daily_sigma, *CLUSTER_FACTOR_BOUNDS, fallback=1.0)


def reversion_pull(price: float, prices: Sequence[float], limit: float, strength: float) -> float:
    """Fractional pull toward the trailing average, bounded to +/-limit before scaling."""
    if not prices or price <= 0:
        return 0.0
    average = sum(prices) / len(prices)
    return clamp((average - price) / price, -limit, limit, fallback=0.0) * strength


def minute_sigma(instrument: Instrument, turbulence: float) -> float:
    """Per-minute volatility with clustering, hard-bounded."""
    daily_sigma = base_daily_sigma(instrument.risk_rating, turbulence)
    sigma = daily_sigma * math.sqrt(1 / TRADING_MINUTES_PER_DAY)
    return clamp(sigma * clustering_factor(instrument, daily_sigma), *MINUTE_SIGMA_BOUNDS)


def day_sigma(instrument: Instrument, turbulence: float) -> float:
    daily_sigma = base_daily_sigma(instrument.risk_rating, turbulence)
    return clamp(daily_sigma * clustering_factor(instrument, daily_sigma), *DAY_SIGMA_BOUNDS)


def momentum_term(instrument: Instrument) -> float:
    """Bounded continuation of the move over the last few days."""
    recent = instrument.recent_prices(MOMENTUM_WINDOW)
    if len(recent) < 2 or recent[0] <= 0:
        return 0.0
    change = (recent[-1] - recent[0]) / recent[0]
    return clamp(change, -MOMENTUM_LIMIT, MOMENTUM_LIMIT, fallback=0.0) * MOMENTUM_STRENGTH


def apply_return(price: float, log_return: float, limit: float) -> float:
    """Apply a log-return through a +/-limit circuit breaker.

    Rounding to cents never pushes the realized move past the breaker.
    """
    pct = clamp(math.expm1(clamp(log_return, -1.0, 1.0, fallback=0.0)), -limit, limit, fallback=0.0)
    new_price = round(price * (1 + pct), 2)

    upper = price * (1 + limit)
    lower = price * (1 - limit)
    if new_price > upper:
        new_price = math.floor(upper * 100) / 100
    elif new_price < lower:
        new_price = math.ceil(lower * 100) / 100

    return max(MIN_PRICE, new_price)


def percent_change(old: float, new: float) -> float:
    """Percentage change rounded to basis points (2 decimals)."""
    if old <= 0:
        return 0.0
    return round((new - old) / old * 10000) / 100


def _safe_price(price: float) -> float:
    if not math.isfinite(price) or price < MIN_PRICE:
        return MIN_PRICE
    return price


# ---------------------------------------------------------------------------
# Minute tick
# ---------------------------------------------------------------------------

def fluctuate_stock_prices(
    instruments: Sequence[Instrument],
    active_events: Sequence[MarketEvent],
    field_pressures: dict[str, MarketPressure],
    stock_pressures: dict[str, MarketPressure],
    rng: RandomSource,
) -> list[Instrument]:
    """Intra-day update: rewrite the last history entry, never append."""
    updated = []
    for instrument in instruments:
        pressure = aggregate_pressures(instrument, active_events, field_pressures, stock_pressures)
        price = _safe_price(instrument.price)

        sigma = minute_sigma(instrument, pressure.turbulence)

        bias = squash(pressure.drift, MINUTE_BIAS_CAP) + squash(pressure.sentiment, MINUTE_BIAS_CAP)
        reversion = reversion_pull(
            price, instrument.recent_prices(REVERSION_WINDOW), REVERSION_LIMIT, REVERSION_STRENGTH,
        )

        log_return = (bias + reversion) / TRADING_MINUTES_PER_DAY + sigma * rng.tempered_shock()
        new_price = apply_return(price, log_return, MINUTE_CIRCUIT_BREAKER)

        history = list(instrument.price_history)
        if history:
            history[-1] = PricePoint(day=history[-1].day, price=new_price)
        else:
            history.append(PricePoint(day=0, price=new_price))

        updated.append(instrument.model_copy(update={
            "price": new_price,
            "trend": percent_change(price, new_price),
            "price_history": history,
        }))

    return updated


# ---------------------------------------------------------------------------
# Day tick
# ---------------------------------------------------------------------------

def next_risk_rating(risk_rating: float, pct: float) -> float:
    """Crashes raise risk, rallies calm it, breaker trips raise it further."""
    if pct <= -BIG_MOVE:
        risk_rating *= RISK_UP
    elif pct >= BIG_MOVE:
        risk_rating *= RISK_DOWN
    if abs(pct) >= DAY_CIRCUIT_BREAKER - 1e-9:
        risk_rating *= RISK_UP
    return clamp(risk_rating, *RISK_BOUNDS, fallback=RISK_BOUNDS[0])


def generate_tomorrows_stock_prices(
    instruments: Sequence[Instrument],
    active_events: Sequence[MarketEvent],
    field_pressures: dict[str, MarketPressure],
    stock_pressures: dict[str, MarketPressure],
    rng: RandomSource,
) -> list[Instrument]:
    """Day update: append one new history entry per instrument."""
    regime = rng.pick(REGIME_BIASES)
    logger.debug("Day regime bias: %+.4f", regime)

    updated = []
    for instrument in instruments:
        pressure = aggregate_pressures(instrument, active_events, field_pressures, stock_pressures)
        price = _safe_price(instrument.price)

        sigma = day_sigma(instrument, pressure.turbulence)

        bias = squash(pressure.drift, DAY_BIAS_CAP) + squash(pressure.sentiment, DAY_BIAS_CAP)

        recovery = reversion_pull(
            price, instrument.recent_prices(RECOVERY_WINDOW), RECOVERY_LIMIT, RECOVERY_STRENGTH,
        )

        log_return = bias + regime + momentum_term(instrument) + recovery + sigma * rng.tempered_shock()
        new_price = apply_return(price, log_return, DAY_CIRCUIT_BREAKER)
        pct = (new_price - price) / price

        history = list(instrument.price_history)
        history.append(PricePoint(day=instrument.last_day + 1 if history else 0, price=new_price))

        updated.append(instrument.model_copy(update={
            "price": new_price,
            "trend": percent_change(price, new_price),
            "risk_rating": next_risk_rating(instrument.risk_rating, pct),
            "price_history": history,
        }))

    return updated


# ---------------------------------------------------------------------------
# Index funds
# ---------------------------------------------------------------------------

def basket_price(fund: IndexFund, stocks_by_name: dict[str, Instrument]) -> float | None:
    """Value-weighted average price of a fund's basket; None if nothing resolves."""
    total_value = 0.0
    total_shares = 0.0
    for holding in fund.stocks_held:
        stock = stocks_by_name.get(holding.name)
        if stock is None:
            continue
        total_value += stock.price * holding.shares_held
        total_shares += holding.shares_held

    if total_shares <= 0:
        return None
    return total_value / total_shares


def update_index_fund_prices(
    stocks: Sequence[Instrument],
    funds: Sequence[IndexFund],
    new_day: bool = False,
    rng: RandomSource | None = None,
) -> list[IndexFund]:
    """Re-derive every fund price from its frozen basket.

    Constituents that no longer resolve are left out. On a day tick a tiny
    fee/tracking-error drag is applied and a new history entry appended;
    otherwise the last entry is overwritten.
    """
    rng = rng or RandomSource()
    stocks_by_name = {s.name: s for s in stocks}

    updated = []
    for fund in funds:
        derived = basket_price(fund, stocks_by_name)
        if derived is None:
            logger.warning("Index fund %s has no resolvable constituents", fund.name)
            new_price = fund.price
        else:
            if new_day:
                derived *= FUND_FEE_BASE + rng.gaussian() * FUND_FEE_NOISE
            new_price = max(MIN_PRICE, round(derived, 2))

        history = list(fund.price_history)
        last_day = history[-1].day if history else 0
        if new_day:
            history.append(PricePoint(day=last_day + 1 if history else 0, price=new_price))
        elif history:
            history[-1] = PricePoint(day=last_day, price=new_price)
        else:
            history.append(PricePoint(day=0, price=new_price))

        updated.append(fund.model_copy(update={
            "price": new_price,
            "trend": percent_change(fund.price, new_price),
            "price_history": history,
        }))

    return updated


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class MarketPriceEngine:
    """Reads market state and pressure, runs an update, writes results back.

    Usage:
        engine = MarketPriceEngine(store, event_engine, rng)
        engine.fluctuate_by_minute()
        engine.fluctuate_by_days(3)
    """

    def __init__(
        self,
        market: MarketStore,
        events: PressureSource,
        rng: RandomSource | None = None,
    ) -> None:
        self._market = market
        self._events = events
        self._rng = rng or RandomSource()

    def fluctuate_by_minute(self) -> None:
        stocks = fluctuate_stock_prices(
            self._market.get_stocks(),
            self._events.get_active_events(),
            self._events.get_field_pressures(),
            self._events.get_stock_pressures(),
            self._rng,
        )
        funds = update_index_fund_prices(stocks, self._market.get_index_funds(), False, self._rng)

        self._market.set_stocks(stocks)
        self._market.set_index_funds(funds)

    def fluctuate_by_days(self, days: int = 1) -> None:
        """Run `days` day updates in memory, writing back once at the end."""
        if days <= 0:
            return

        stocks = self._market.get_stocks()
        funds = self._market.get_index_funds()
        for _ in range(days):
            stocks = generate_tomorrows_stock_prices(
                stocks,
                self._events.get_active_events(),
                self._events.get_field_pressures(),
                self._events.get_stock_pressures(),
                self._rng,
            )
            funds = update_index_fund_prices(stocks, funds, True, self._rng)

        self._market.set_stocks(stocks)
        self._market.set_index_funds(funds)
        logger.debug("Advanced prices by %d day(s)", days)
