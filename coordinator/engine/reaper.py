"""Expiry reaper — moves stale pending trades to ``expired``.

The sweep uses the same compare-and-transition primitive as user operations,
so a trade that a seller advanced between enumeration and the write is
skipped rather than expired.
"""

import logging
import threading
from datetime import datetime
from functools import partial

from coordinator.engine import state_machine
from coordinator.engine.registry import TradeRegistry
from coordinator.errors import Conflict, InvalidState
from coordinator.models.trade import TradeStatus
from coordinator.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class ExpiryReaper:
    def __init__(self, registry: TradeRegistry, clock: Clock = utc_now):
        self.registry = registry
        self._clock = clock
        self._lock = threading.Lock()
        self.runs = 0
        self.total_expired = 0
        self.last_run_at: datetime | None = None
        self.last_expired = 0

    def sweep(self) -> int:
        """Expire every pending trade past its deadline. Returns how many."""
        now = self._clock()
        expired = 0

        for trade in self.registry.list(status=TradeStatus.PENDING):
            if not trade.is_expired(now):
                continue
            try:
                self.registry.compare_and_transition(
                    trade.id,
                    TradeStatus.PENDING,
                    partial(state_machine.expire, now=now),
                )
            except (Conflict, InvalidState) as e:
                logger.debug(f"[trade {trade.id}] Expiry skipped: {e}")
                continue
            expired += 1
            logger.info(f"[trade {trade.id}] Expired (deadline {trade.expires_at.isoformat()})")

        # Sweeps run both on the event loop and in API worker threads
        with self._lock:
            self.runs += 1
            self.last_run_at = now
            self.last_expired = expired
            self.total_expired += expired
        if expired:
            logger.info(f"Expiry sweep expired {expired} trade(s)")
        return expired

    def status(self) -> dict:
        with self._lock:
            return {
                "runs": self.runs,
                "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
                "last_expired": self.last_expired,
                "total_expired": self.total_expired,
            }
