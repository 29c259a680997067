"""Shared fixtures: a controllable clock and registries for both backends."""

from datetime import datetime, timedelta, timezone

import pytest

from coordinator.database import create_db_and_tables, make_engine
from coordinator.engine import state_machine
from coordinator.engine.registry import InMemoryTradeRegistry
from coordinator.engine.sql_registry import SqlTradeRegistry
from coordinator.services.coordinator import TradeCoordinator

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_trade(trade_id: str = "t1", now: datetime = T0, asset_id: str = "a1", **kwargs):
    """A fresh pending trade built through the state machine."""
    return state_machine.create(
        trade_id,
        asset_id=asset_id,
        seller_node=kwargs.pop("seller_node", "S"),
        price_units=kwargs.pop("price_units", 1000),
        now=now,
        **kwargs,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sql_engine():
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def registry(request):
    if request.param == "memory":
        yield InMemoryTradeRegistry()
    else:
        yield SqlTradeRegistry(request.getfixturevalue("sql_engine"))


@pytest.fixture
def coordinator(registry, clock):
    return TradeCoordinator(registry, clock=clock)
