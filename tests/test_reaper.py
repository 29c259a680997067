"""Tests for the expiry reaper and its schedule."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from coordinator.engine import state_machine
from coordinator.engine.reaper import ExpiryReaper
from coordinator.engine.registry import InMemoryTradeRegistry
from coordinator.engine.scheduler import REAPER_JOB_ID, ReaperSchedule, run_sweep
from coordinator.errors import InvalidState
from coordinator.models.trade import TradeStatus

from conftest import T0, FakeClock, make_trade


def test_sweep_expires_only_stale_pending_trades(registry):
    registry.insert(make_trade("stale", now=T0))
    registry.insert(make_trade("fresh", now=T0 + timedelta(hours=12)))
    registry.insert(make_trade("submitted", now=T0))
    registry.compare_and_transition(
        "submitted", TradeStatus.PENDING,
        lambda t: state_machine.submit_seller(t, "blob1", now=T0),
    )

    clock = FakeClock(T0 + timedelta(hours=24))
    reaper = ExpiryReaper(registry, clock=clock)

    assert reaper.sweep() == 1
    assert registry.get("stale").status is TradeStatus.EXPIRED
    assert registry.get("fresh").status is TradeStatus.PENDING
    assert registry.get("submitted").status is TradeStatus.AWAITING_BUYER

    stats = registry.stats.snapshot()
    assert stats.to_dict() == {"total": 3, "pending": 2, "completed": 0, "failed": 0, "expired": 1}


def test_expired_trades_stay_expired(registry):
    trade = make_trade("t1")
    registry.insert(trade)
    clock = FakeClock(trade.expires_at + timedelta(seconds=1))
    reaper = ExpiryReaper(registry, clock=clock)

    assert reaper.sweep() == 1
    clock.advance(days=3)
    assert reaper.sweep() == 0

    expired = registry.get("t1")
    assert expired.status is TradeStatus.EXPIRED
    with pytest.raises(InvalidState) as exc:
        state_machine.submit_seller(expired, "blob1", now=clock.now)
    assert exc.value.current_status == "expired"
    assert registry.stats.snapshot().expired == 1


def test_nothing_to_do_before_deadline(registry):
    registry.insert(make_trade("t1"))
    reaper = ExpiryReaper(registry, clock=FakeClock(T0 + timedelta(hours=23, minutes=59)))
    assert reaper.sweep() == 0
    assert registry.get("t1").status is TradeStatus.PENDING


class SellerWinsRegistry(InMemoryTradeRegistry):
    """Advances every listed trade right after the reaper enumerates it."""

    def list(self, **kwargs):
        snapshot = super().list(**kwargs)
        for trade in snapshot:
            self.compare_and_transition(
                trade.id, TradeStatus.PENDING,
                lambda t: state_machine.submit_seller(t, "blob1", now=T0),
            )
        return snapshot


def test_trade_advanced_after_enumeration_is_skipped(caplog):
    registry = SellerWinsRegistry()
    registry.insert(make_trade("t1"))
    reaper = ExpiryReaper(registry, clock=FakeClock(T0 + timedelta(days=2)))

    with caplog.at_level("DEBUG", logger="coordinator.engine.reaper"):
        assert reaper.sweep() == 0

    assert registry.get("t1").status is TradeStatus.AWAITING_BUYER
    assert registry.get("t1").seller_artifact == "blob1"
    assert "Expiry skipped" in caplog.text
    stats = registry.stats.snapshot()
    assert (stats.pending, stats.expired) == (1, 0)


def test_reaper_bookkeeping():
    registry = InMemoryTradeRegistry()
    registry.insert(make_trade("t1"))
    registry.insert(make_trade("t2"))
    clock = FakeClock(T0 + timedelta(days=1))
    reaper = ExpiryReaper(registry, clock=clock)
    assert reaper.status()["last_run_at"] is None

    reaper.sweep()
    reaper.sweep()
    status = reaper.status()
    assert status["runs"] == 2
    assert status["last_expired"] == 0
    assert status["total_expired"] == 2
    assert status["last_run_at"] == clock.now.isoformat()


def test_concurrent_sweeps_keep_bookkeeping_consistent():
    registry = InMemoryTradeRegistry()
    for i in range(40):
        registry.insert(make_trade(f"t{i}"))
    reaper = ExpiryReaper(registry, clock=FakeClock(T0 + timedelta(days=1)))
    barrier = threading.Barrier(8)

    def sweep():
        barrier.wait()
        return reaper.sweep()

    with ThreadPoolExecutor(max_workers=8) as pool:
        counts = list(pool.map(lambda _: sweep(), range(8)))

    assert sum(counts) == 40
    status = reaper.status()
    assert status["runs"] == 8
    assert status["total_expired"] == 40
    assert registry.stats.snapshot().expired == 40


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_run_sweep_job_returns_count():
    registry = InMemoryTradeRegistry()
    registry.insert(make_trade("t1"))
    reaper = ExpiryReaper(registry, clock=FakeClock(T0 + timedelta(days=1)))
    assert await run_sweep(reaper) == 1


@pytest.mark.asyncio
async def test_schedule_start_and_stop():
    reaper = ExpiryReaper(InMemoryTradeRegistry())
    schedule = ReaperSchedule(reaper, interval_seconds=30)

    schedule.start()
    try:
        assert schedule.running
        job = schedule.scheduler.get_job(REAPER_JOB_ID)
        assert job is not None
        assert job.trigger.interval == timedelta(seconds=30)
        status = schedule.status()
        assert status["running"] is True
        assert status["interval_seconds"] == 30
        assert status["next_run"] is not None
    finally:
        await schedule.stop()

    assert not schedule.running
    assert not schedule.scheduler.running
    assert schedule.status()["running"] is False
    await schedule.stop()
    assert not schedule.running


def test_schedule_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        ReaperSchedule(ExpiryReaper(InMemoryTradeRegistry()), interval_seconds=0)


@pytest.mark.asyncio
async def test_stop_before_start_is_a_no_op():
    schedule = ReaperSchedule(ExpiryReaper(InMemoryTradeRegistry()), interval_seconds=30)
    await schedule.stop()
    assert not schedule.running
