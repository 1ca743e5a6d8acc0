from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

# Ensure repo root is importable (core/, engine/, ... are top-level packages).
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from core.models.events import MarketEvent  # noqa: E402
from core.models.market import Holding, IndexFund, Instrument, PricePoint  # noqa: E402
from core.noise import RandomSource  # noqa: E402
from engine.templates import EventCatalog  # noqa: E402


@pytest.fixture
def rng() -> RandomSource:
    return RandomSource(seed=1234)


def build_stock(
    name: str = "ABCD",
    price: float = 100.0,
    field: str = "Technology",
    risk_rating: float = 0.02,
    history: list[float] | None = None,
    shares: float = 500_000,
) -> Instrument:
    prices = history if history is not None else [price] * 30
    return Instrument(
        name=name,
        price=prices[-1] if prices else price,
        price_history=[PricePoint(day=i, price=p) for i, p in enumerate(prices)],
        shares_outstanding=shares,
        field=field,
        risk_rating=risk_rating,
    )


def build_fund(name: str, holdings: dict[str, float], price: float, days: int = 30) -> IndexFund:
    return IndexFund(
        name=name,
        price=price,
        price_history=[PricePoint(day=i, price=price) for i in range(days)],
        shares_outstanding=sum(holdings.values()),
        stocks_held=[Holding(name=n, shares_held=s) for n, s in holdings.items()],
    )


@pytest.fixture
def make_stock() -> Callable[..., Instrument]:
    return build_stock


@pytest.fixture
def make_fund() -> Callable[..., IndexFund]:
    return build_fund


@pytest.fixture
def tech_event() -> MarketEvent:
    return MarketEvent(
        title="Chip Glut",
        description="Too many chips.",
        event_type="Supply",
        affected_fields=["Technology"],
        drift_delta=-1.0,
        turbulence_delta=0.2,
        sentiment_delta=-0.5,
        duration_days=3,
    )


@pytest.fixture
def small_catalog(tech_event: MarketEvent) -> EventCatalog:
    extreme = tech_event.model_copy(update={"title": "Chip Crash", "duration_days": 2})
    return EventCatalog(mild=[tech_event], extreme=[extreme])
