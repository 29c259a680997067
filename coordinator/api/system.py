"""System API — health check, statistics, reaper schedule, manual sweep."""

import time

from fastapi import APIRouter, Depends

from coordinator.api.deps import get_coordinator, get_reaper, get_reaper_schedule
from coordinator.engine.reaper import ExpiryReaper
from coordinator.engine.scheduler import ReaperSchedule
from coordinator.schemas.trade import TradeStatsRead
from coordinator.services.coordinator import TradeCoordinator

router = APIRouter(prefix="/api/system", tags=["system"])

_started = time.monotonic()


@router.get("/health")
def health_check():
    return {"status": "ok", "uptime": round(time.monotonic() - _started, 3)}


@router.get("/stats", response_model=TradeStatsRead)
def trade_stats(coordinator: TradeCoordinator = Depends(get_coordinator)):
    return coordinator.stats().to_dict()


@router.get("/scheduler")
def scheduler_status(
    reaper: ExpiryReaper = Depends(get_reaper),
    schedule: ReaperSchedule | None = Depends(get_reaper_schedule),
):
    """Reaper schedule state; ``running`` is false when the reaper is disabled."""
    if schedule is None:
        return {"running": False, "interval_seconds": None, "next_run": None, "reaper": reaper.status()}
    return schedule.status()


@router.post("/sweep")
def trigger_sweep(reaper: ExpiryReaper = Depends(get_reaper)):
    """Run one expiry sweep now."""
    expired = reaper.sweep()
    return {"status": "ok", "expired": expired}
