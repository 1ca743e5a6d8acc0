"""Instrument generator -- builds the initial stock and index fund universe."""

from __future__ import annotations

import logging
import string

from core.models.market import MIN_PRICE, STOCK_TYPE, Holding, IndexFund, Instrument, PricePoint
from core.noise import RandomSource

logger = logging.getLogger(__name__)

STOCK_FIELDS = [
    "Technology",
    "Healthcare",
    "Finance",
    "Energy",
    "Retail",
    "Biotech",
    "Automotive",
    "Aerospace",
    "Telecom",
    "Entertainment",
    "Cybersecurity",
    "Robotics",
    "Neurotech",
    "AI",
    "Agritech",
    "Nanotech",
    "Virtual Reality",
    "Quantum Computing",
    "Space Mining",
    "Climate Engineering",
]

RISK_RATINGS = (0.02, 0.05, 0.1)
BASE_PRICE_RANGE = (10.0, 210.0)
SHARES_RANGE = (100_000, 1_000_000)
SYMBOL_LENGTH = 4

HISTORY_DAYS = 30
FUND_VALUE = 1_000_000.0
FUND_SIZE_RANGE = (3, 5)
TOTAL_MARKET_INDEX = "Total Market Index"


def generate_symbol(rng: RandomSource) -> str:
    return "".join(rng.pick(string.ascii_uppercase) for _ in range(SYMBOL_LENGTH))


def generate_price_history(
    rng: RandomSource,
    risk_rating: float,
    days: int,
    base_price: float,
) -> list[PricePoint]:
    """Compound a uniform +/-risk_rating daily shock from base_price."""
    history = []
    price = base_price
    for day in range(days):
        price = max(MIN_PRICE, round(price * (1 + rng.uniform(-risk_rating, risk_rating)), 2))
        history.append(PricePoint(day=day, price=price))
    return history


def _trend(history: list[PricePoint]) -> float:
    if len(history) < 2 or history[-2].price <= 0:
        return 0.0
    return round((history[-1].price - history[-2].price) / history[-2].price * 10000) / 100


def generate_market_stock(rng: RandomSource, history_days: int = HISTORY_DAYS) -> Instrument:
    base_price = round(rng.uniform(*BASE_PRICE_RANGE), 2)
    risk_rating = rng.pick(RISK_RATINGS)
    history = generate_price_history(rng, risk_rating, max(history_days, 1), base_price)

    return Instrument(
        name=generate_symbol(rng),
        price=history[-1].price,
        price_history=history,
        shares_outstanding=rng.randint(*SHARES_RANGE),
        field=rng.pick(STOCK_FIELDS),
        trend=_trend(history),
        risk_rating=risk_rating,
        type=STOCK_TYPE,
    )


def generate_market_stocks(
    count: int,
    rng: RandomSource | None = None,
    history_days: int = HISTORY_DAYS,
) -> list[Instrument]:
    """Generate `count` stocks with unique symbols (rejection sampling)."""
    rng = rng or RandomSource()
    stocks: list[Instrument] = []
    names: set[str] = set()

    while len(stocks) < count:
        stock = generate_market_stock(rng, history_days)
        if stock.name in names:
            logger.debug("Symbol collision on %s, regenerating", stock.name)
            continue
        names.add(stock.name)
        stocks.append(stock)

    logger.info("Generated %d market stocks", len(stocks))
    return stocks


def build_index_fund(name: str, constituents: list[Instrument]) -> IndexFund:
    """Build a cap-weighted fund over the given constituents.

    Weights use market cap among the chosen constituents only and are
    frozen as share counts; history is replayed from constituent history.
    """
    total_cap = sum(s.market_cap for s in constituents)
    holdings = []
    for stock in constituents:
        if stock.price <= 0 or total_cap <= 0:
            continue
        capital = FUND_VALUE * stock.market_cap / total_cap
        holdings.append(Holding(name=stock.name, shares_held=capital / stock.price))

    total_shares = sum(h.shares_held for h in holdings)
    by_name = {s.name: s for s in constituents}

    days = min((len(by_name[h.name].price_history) for h in holdings), default=0)
    history = []
    for i in range(days):
        value = sum(by_name[h.name].price_history[i].price * h.shares_held for h in holdings)
        day = by_name[holdings[0].name].price_history[i].day
        history.append(PricePoint(day=day, price=round(value / total_shares, 2)))

    price = history[-1].price if history else MIN_PRICE

    return IndexFund(
        name=name,
        price=price,
        price_history=history,
        shares_outstanding=total_shares,
        trend=_trend(history),
        stocks_held=holdings,
    )


def generate_index_funds(
    stocks: list[Instrument],
    count: int,
    rng: RandomSource | None = None,
) -> list[IndexFund]:
    """Generate `count` diversified funds plus one Total Market Index."""
    rng = rng or RandomSource()
    funds: list[IndexFund] = []
    if not stocks:
        return funds

    names = {s.name for s in stocks} | {TOTAL_MARKET_INDEX}
    for _ in range(count):
        name = generate_symbol(rng)
        while name in names:
            name = generate_symbol(rng)
        names.add(name)
        funds.append(build_index_fund(name, rng.pick_multiple(stocks, *FUND_SIZE_RANGE)))

    funds.append(build_index_fund(TOTAL_MARKET_INDEX, list(stocks)))

    logger.info("Generated %d index funds", len(funds))
    return funds
