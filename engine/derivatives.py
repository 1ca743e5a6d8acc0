"""Derivative pricing -- stateless valuation for options and short sales."""

from __future__ import annotations

import math

from core.models.market import Instrument

DAYS_PER_YEAR = 365
BASE_PREMIUM_RATE = 0.1


def _option_price(instrument: Instrument, intrinsic: float, days_to_expiry: int, quantity: float) -> float:
    time_factor = math.sqrt(max(days_to_expiry, 0) / DAYS_PER_YEAR)
    premium = BASE_PREMIUM_RATE * instrument.price * time_factor
    risk_multiplier = 1 + instrument.risk_rating / 10
    trend_multiplier = 1 + instrument.trend / 100

    per_share = (intrinsic + premium) * risk_multiplier * trend_multiplier
    return round(per_share * quantity, 2)


def call_option_price(instrument: Instrument, strike: float, days_to_expiry: int, quantity: float) -> float:
    """Premium for a call: intrinsic value plus a time/volatility premium."""
    return _option_price(instrument, max(instrument.price - strike, 0.0), days_to_expiry, quantity)


def put_option_price(instrument: Instrument, strike: float, days_to_expiry: int, quantity: float) -> float:
    """Premium for a put: intrinsic value plus a time/volatility premium."""
    return _option_price(instrument, max(strike - instrument.price, 0.0), days_to_expiry, quantity)


def short_sale_notional(instrument: Instrument, quantity: float) -> float:
    return round(instrument.price * quantity, 2)
