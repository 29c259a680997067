"""Trade registry contract and the in-memory implementation.

``compare_and_transition`` is the single mutation primitive: every status
change, whether user-driven or from the expiry reaper, goes through it.
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable

from coordinator.engine.locks import RowLocks
from coordinator.engine.stats import StatisticsAggregator
from coordinator.errors import Conflict, DuplicateId, NotFound
from coordinator.models.trade import Trade, TradeStatus

Mutator = Callable[[Trade], Trade]


class TradeRegistry(ABC):
    """Keyed store of Trade records. Records handed out are immutable values."""

    def __init__(self, stats: StatisticsAggregator | None = None):
        self.stats = stats or StatisticsAggregator()

    @abstractmethod
    def insert(self, trade: Trade) -> Trade:
        """Store a new trade. Raises DuplicateId if the id exists."""

    @abstractmethod
    def get(self, trade_id: str) -> Trade:
        """Return the current record. Raises NotFound."""

    @abstractmethod
    def compare_and_transition(
        self,
        trade_id: str,
        expected_status: TradeStatus,
        mutator: Mutator,
    ) -> Trade:
        """Atomically replace the record with ``mutator(current)``.

        Raises NotFound for an unknown id and Conflict when the stored status
        is not ``expected_status``. If the mutator raises, nothing is written
        and the exception propagates.
        """

    @abstractmethod
    def list(
        self,
        status: TradeStatus | None = None,
        asset_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Trade]:
        """Snapshot of matching trades, newest first, ties by id."""


def check_successor(trade_id: str, updated: Trade):
    if updated.id != trade_id:
        raise ValueError(f"Mutator changed trade id {trade_id} -> {updated.id}")


def sort_newest_first(trades: list[Trade]) -> list[Trade]:
    # Two stable sorts: id ascending, then created_at descending
    ordered = sorted(trades, key=lambda t: t.id)
    ordered.sort(key=lambda t: t.created_at, reverse=True)
    return ordered


class InMemoryTradeRegistry(TradeRegistry):
    """Dict-backed registry, safe for concurrent threads.

    Writers on the same id serialize on that id's row lock; writers on
    different ids do not contend. Readers take no row lock.
    """

    def __init__(self, stats: StatisticsAggregator | None = None):
        super().__init__(stats)
        self._trades: dict[str, Trade] = {}
        self._index_lock = threading.Lock()
        self._row_locks = RowLocks()

    def insert(self, trade: Trade) -> Trade:
        with self._row_locks.hold(trade.id):
            with self._index_lock:
                if trade.id in self._trades:
                    raise DuplicateId(trade.id)
                self._trades[trade.id] = trade
            self.stats.record_created()
        return trade

    def get(self, trade_id: str) -> Trade:
        trade = self._trades.get(trade_id)
        if trade is None:
            raise NotFound(trade_id)
        return trade

    def compare_and_transition(
        self,
        trade_id: str,
        expected_status: TradeStatus,
        mutator: Mutator,
    ) -> Trade:
        with self._row_locks.hold(trade_id):
            current = self.get(trade_id)
            if current.status is not expected_status:
                raise Conflict(
                    f"Trade {trade_id} is {current.status.value}, "
                    f"expected {expected_status.value}"
                )
            updated = mutator(current)
            check_successor(trade_id, updated)
            self._trades[trade_id] = updated
            self.stats.record_transition(current.status, updated.status)
        return updated

    def list(
        self,
        status: TradeStatus | None = None,
        asset_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Trade]:
        with self._index_lock:
            results = list(self._trades.values())

        if status is not None:
            status = TradeStatus(status)
            results = [t for t in results if t.status is status]
        if asset_id is not None:
            results = [t for t in results if t.asset_id == asset_id]

        results = sort_newest_first(results)
        end = None if limit is None else offset + limit
        return results[offset:end]

    def __len__(self) -> int:
        return len(self._trades)
