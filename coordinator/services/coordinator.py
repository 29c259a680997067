"""Coordinator facade — the public operation surface of the trade core.

Mutating operations run under a per-trade guard: read the trade, check the
operation is legal for its status, then commit through the registry's
compare-and-transition with the status just read. The expiry reaper does not
take the guard; it races only at the compare-and-transition.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable

from coordinator.engine import state_machine
from coordinator.engine.locks import KeyedLock
from coordinator.engine.registry import Mutator, TradeRegistry
from coordinator.engine.state_machine import Operation
from coordinator.engine.stats import TradeStats
from coordinator.errors import Conflict, InvalidInput
from coordinator.models.trade import Trade, TradeStatus
from coordinator.services.artifacts import AcceptAllValidator, ArtifactValidator
from coordinator.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class TradeCoordinator:
    def __init__(
        self,
        registry: TradeRegistry,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = state_machine.new_trade_id,
        guard_timeout: float | None = 5.0,
        artifact_validator: ArtifactValidator | None = None,
    ):
        self.registry = registry
        self._clock = clock
        self._id_factory = id_factory
        self._guard_timeout = guard_timeout
        self._guards = KeyedLock()
        self._artifact_validator = artifact_validator or AcceptAllValidator()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_trade(self, trade_id: str) -> Trade:
        return self.registry.get(trade_id)

    def list_trades(
        self,
        status: TradeStatus | None = None,
        asset_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Trade]:
        return self.registry.list(status=status, asset_id=asset_id, limit=limit, offset=offset)

    def stats(self) -> TradeStats:
        return self.registry.stats.snapshot()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_trade(
        self,
        asset_id: str,
        seller_node: str,
        price_units: int,
        buyer_node: str | None = None,
        lock_timeout: int | None = None,
    ) -> Trade:
        trade = state_machine.create(
            self._id_factory(),
            asset_id=asset_id,
            seller_node=seller_node,
            price_units=price_units,
            now=self._clock(),
            buyer_node=buyer_node,
            lock_timeout=lock_timeout,
        )
        self.registry.insert(trade)
        logger.info(
            f"[trade {trade.id}] Created for asset {trade.asset_id} "
            f"at {trade.price_units} units"
        )
        return trade

    async def submit_seller_artifact(self, trade_id: str, seller_artifact: str) -> Trade:
        return await self._transition(
            trade_id,
            Operation.SUBMIT_SELLER,
            lambda t: state_machine.submit_seller(t, seller_artifact, now=self._clock()),
            artifacts={"seller_artifact": seller_artifact},
        )

    async def submit_buyer_participation(
        self,
        trade_id: str,
        lock_hash: str,
        buyer_artifact: str,
        buyer_node: str | None = None,
    ) -> Trade:
        return await self._transition(
            trade_id,
            Operation.SUBMIT_BUYER,
            lambda t: state_machine.submit_buyer(
                t, lock_hash, buyer_artifact, now=self._clock(), buyer_node=buyer_node
            ),
            artifacts={"buyer_artifact": buyer_artifact},
        )

    async def settle_trade(self, trade_id: str, settlement_ref: str, preimage: str) -> Trade:
        return await self._transition(
            trade_id,
            Operation.SETTLE,
            lambda t: state_machine.settle(t, settlement_ref, preimage, now=self._clock()),
        )

    @asynccontextmanager
    async def _guard(self, trade_id: str):
        try:
            async with self._guards.hold(trade_id, timeout=self._guard_timeout):
                yield
        except asyncio.TimeoutError:
            raise Conflict(f"Trade {trade_id} is busy; retry")

    def _check_artifacts(self, artifacts: dict[str, str]):
        for field, blob in artifacts.items():
            if blob and not self._artifact_validator.is_valid(blob):
                raise InvalidInput(f"{field} is not a valid transaction artifact")

    async def _transition(
        self,
        trade_id: str,
        operation: Operation,
        mutator: Mutator,
        artifacts: dict[str, str] | None = None,
    ) -> Trade:
        async with self._guard(trade_id):
            current = self.registry.get(trade_id)
            state_machine.ensure_allowed(current, operation, self._clock())
            self._check_artifacts(artifacts or {})
            updated = self.registry.compare_and_transition(trade_id, current.status, mutator)

        logger.info(
            f"[trade {trade_id}] {operation.value}: "
            f"{current.status.value} -> {updated.status.value}"
        )
        return updated
