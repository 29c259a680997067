"""Running trade counters.

Counters move only when a registry commits a write, inside the same critical
section, so a snapshot always agrees with the statuses in storage.
"""

import threading
from collections.abc import Mapping
from dataclasses import asdict, dataclass, replace

from coordinator.models.trade import TERMINAL_STATUSES, TradeStatus


@dataclass
class TradeStats:
    total: int = 0
    pending: int = 0  # open trades: pending, awaiting_buyer or ready_to_settle
    completed: int = 0
    failed: int = 0
    expired: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class StatisticsAggregator:
    def __init__(self):
        self._lock = threading.Lock()
        self._stats = TradeStats()

    def record_created(self):
        with self._lock:
            self._stats.total += 1
            self._stats.pending += 1

    def record_transition(self, before: TradeStatus, after: TradeStatus):
        if before is after:
            return
        with self._lock:
            if after in TERMINAL_STATUSES and before not in TERMINAL_STATUSES:
                self._stats.pending -= 1
            if after is TradeStatus.COMPLETED:
                self._stats.completed += 1
            elif after is TradeStatus.EXPIRED:
                self._stats.expired += 1

    def seed(self, counts: Mapping[TradeStatus, int]):
        """Reset counters from per-status totals of an existing store."""
        with self._lock:
            self._stats = TradeStats(
                total=sum(counts.values()),
                pending=sum(n for s, n in counts.items() if s not in TERMINAL_STATUSES),
                completed=counts.get(TradeStatus.COMPLETED, 0),
                expired=counts.get(TradeStatus.EXPIRED, 0),
            )

    def snapshot(self) -> TradeStats:
        with self._lock:
            return replace(self._stats)
