"""SQL-backed trade registry (SQLModel over any SQLAlchemy engine).

Compare-and-transition is a conditional UPDATE keyed on (id, status); the
database rejects a stale write even if another process got there first.
"""

import logging

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from coordinator.engine.locks import RowLocks
from coordinator.engine.registry import Mutator, TradeRegistry, check_successor
from coordinator.engine.stats import StatisticsAggregator
from coordinator.errors import Conflict, DuplicateId, NotFound
from coordinator.models.trade import Trade, TradeStatus
from coordinator.models.trade_row import TradeRow

logger = logging.getLogger(__name__)


class SqlTradeRegistry(TradeRegistry):
    def __init__(self, engine: Engine, stats: StatisticsAggregator | None = None):
        super().__init__(stats)
        self._engine = engine
        self._row_locks = RowLocks()
        self._seed_stats()

    def _seed_stats(self):
        with Session(self._engine) as session:
            rows = session.exec(
                select(TradeRow.status, func.count()).group_by(TradeRow.status)
            ).all()
        counts = {TradeStatus(status): count for status, count in rows}
        self.stats.seed(counts)
        if counts:
            logger.info(f"Loaded {sum(counts.values())} trades from storage")

    def insert(self, trade: Trade) -> Trade:
        with self._row_locks.hold(trade.id):
            with Session(self._engine) as session:
                session.add(TradeRow.from_trade(trade))
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    raise DuplicateId(trade.id)
            self.stats.record_created()
        return trade

    def get(self, trade_id: str) -> Trade:
        with Session(self._engine) as session:
            row = session.get(TradeRow, trade_id)
            if row is None:
                raise NotFound(trade_id)
            return row.to_trade()

    def compare_and_transition(
        self,
        trade_id: str,
        expected_status: TradeStatus,
        mutator: Mutator,
    ) -> Trade:
        with self._row_locks.hold(trade_id):
            with Session(self._engine) as session:
                row = session.get(TradeRow, trade_id)
                if row is None:
                    raise NotFound(trade_id)
                current = row.to_trade()
                if current.status is not expected_status:
                    raise Conflict(
                        f"Trade {trade_id} is {current.status.value}, "
                        f"expected {expected_status.value}"
                    )
                updated = mutator(current)
                check_successor(trade_id, updated)

                values = TradeRow.from_trade(updated).model_dump(exclude={"id"})
                result = session.execute(
                    update(TradeRow)
                    .where(TradeRow.id == trade_id)
                    .where(TradeRow.status == expected_status.value)
                    .values(**values)
                )
                if result.rowcount != 1:
                    session.rollback()
                    raise Conflict(f"Trade {trade_id} changed during transition")
                session.commit()
            self.stats.record_transition(current.status, updated.status)
        return updated

    def list(
        self,
        status: TradeStatus | None = None,
        asset_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Trade]:
        stmt = select(TradeRow).order_by(TradeRow.created_at.desc(), TradeRow.id)
        if status is not None:
            stmt = stmt.where(TradeRow.status == TradeStatus(status).value)
        if asset_id is not None:
            stmt = stmt.where(TradeRow.asset_id == asset_id)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with Session(self._engine) as session:
            return [row.to_trade() for row in session.exec(stmt).all()]
