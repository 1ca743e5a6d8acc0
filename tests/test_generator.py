from __future__ import annotations

import pytest

from core.models.market import INDEX_FUND_TYPE, STOCK_TYPE
from core.noise import RandomSource
from engine.generator import (
    FUND_SIZE_RANGE,
    FUND_VALUE,
    RISK_RATINGS,
    STOCK_FIELDS,
    TOTAL_MARKET_INDEX,
    build_index_fund,
    generate_index_funds,
    generate_market_stocks,
    generate_price_history,
)


@pytest.fixture
def stocks():
    return generate_market_stocks(25, RandomSource(seed=42))


def test_generated_stocks_have_unique_names(stocks) -> None:
    names = [s.name for s in stocks]
    assert len(names) == 25
    assert len(set(names)) == 25
    assert all(len(n) == 4 and n.isupper() for n in names)


def test_generated_stocks_are_well_formed(stocks) -> None:
    for stock in stocks:
        assert stock.type == STOCK_TYPE
        assert stock.field in STOCK_FIELDS
        assert stock.risk_rating in RISK_RATINGS
        assert len(stock.price_history) == 30
        assert [p.day for p in stock.price_history] == list(range(30))
        assert stock.price == stock.price_history[-1].price
        assert stock.price >= 0.01
        assert stock.shares_outstanding > 0


def test_same_seed_generates_same_market() -> None:
    a = generate_market_stocks(5, RandomSource(seed=9))
    b = generate_market_stocks(5, RandomSource(seed=9))
    assert a == b


def test_price_history_compounds_within_risk_band() -> None:
    history = generate_price_history(RandomSource(seed=1), 0.05, 30, 100.0)
    prices = [100.0] + [p.price for p in history]
    for old, new in zip(prices, prices[1:]):
        # Allow half a cent for rounding
        assert abs(new - old) <= old * 0.05 + 0.005


def test_generate_index_funds_adds_total_market_index(stocks) -> None:
    funds = generate_index_funds(stocks, 5, RandomSource(seed=42))

    assert len(funds) == 6
    assert funds[-1].name == TOTAL_MARKET_INDEX
    assert {h.name for h in funds[-1].stocks_held} == {s.name for s in stocks}

    stock_names = {s.name for s in stocks}
    for fund in funds[:-1]:
        assert FUND_SIZE_RANGE[0] <= len(fund.stocks_held) <= FUND_SIZE_RANGE[1]
        assert {h.name for h in fund.stocks_held} <= stock_names
        assert fund.name not in stock_names
        assert fund.type == INDEX_FUND_TYPE


def test_fund_weights_use_chosen_constituents_only(make_stock) -> None:
    small = make_stock("SMAL", price=10.0, shares=1000)
    large = make_stock("LARG", price=30.0, shares=3000)

    fund = build_index_fund("PAIR", [small, large])

    capital = {h.name: h.shares_held * {"SMAL": 10.0, "LARG": 30.0}[h.name] for h in fund.stocks_held}
    assert sum(capital.values()) == pytest.approx(FUND_VALUE)
    assert capital["LARG"] / capital["SMAL"] == pytest.approx(9.0)


def test_fund_history_is_replayed_from_constituents(make_stock) -> None:
    a = make_stock("AAAA", history=[float(10 + i) for i in range(30)], shares=1000)
    b = make_stock("BBBB", history=[20.0] * 30, shares=1000)

    fund = build_index_fund("PAIR", [a, b])

    assert len(fund.price_history) == 30
    assert fund.price == fund.price_history[-1].price
    assert fund.price_history[0].price != fund.price_history[-1].price


def test_no_funds_without_stocks() -> None:
    assert generate_index_funds([], 3, RandomSource(seed=1)) == []
