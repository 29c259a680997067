"""TradeRow model — durable, flattened storage of a Trade."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from coordinator.models.trade import (
    AwaitingBuyer,
    Completed,
    Expired,
    Pending,
    ReadyToSettle,
    Trade,
    TradeStatus,
)
from coordinator.utils.clock import as_utc


class TradeRow(SQLModel, table=True):
    __tablename__ = "trade"

    id: str = Field(primary_key=True, max_length=64)
    asset_id: str = Field(index=True)
    seller_node: str
    buyer_node: str | None = None
    price_units: int
    lock_timeout: int
    status: str = Field(index=True)  # TradeStatus value
    created_at: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))
    completed_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    seller_artifact: str | None = None
    buyer_artifact: str | None = None
    lock_hash: str | None = None
    settlement_ref: str | None = None
    preimage: str | None = None

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeRow":
        return cls(
            id=trade.id,
            asset_id=trade.asset_id,
            seller_node=trade.seller_node,
            buyer_node=trade.buyer_node,
            price_units=trade.price_units,
            lock_timeout=trade.lock_timeout,
            status=trade.status.value,
            created_at=trade.created_at,
            expires_at=trade.expires_at,
            completed_at=trade.completed_at,
            seller_artifact=trade.seller_artifact,
            buyer_artifact=trade.buyer_artifact,
            lock_hash=trade.lock_hash,
            settlement_ref=trade.settlement_ref,
            preimage=trade.preimage,
        )

    def to_trade(self) -> Trade:
        """Rebuild the tagged state. Raises ValidationError on a corrupt row."""
        status = TradeStatus(self.status)
        if status is TradeStatus.PENDING:
            state = Pending()
        elif status is TradeStatus.AWAITING_BUYER:
            state = AwaitingBuyer(seller_artifact=self.seller_artifact)
        elif status is TradeStatus.READY_TO_SETTLE:
            state = ReadyToSettle(
                seller_artifact=self.seller_artifact,
                buyer_artifact=self.buyer_artifact,
                lock_hash=self.lock_hash,
            )
        elif status is TradeStatus.COMPLETED:
            state = Completed(
                seller_artifact=self.seller_artifact,
                buyer_artifact=self.buyer_artifact,
                lock_hash=self.lock_hash,
                settlement_ref=self.settlement_ref,
                preimage=self.preimage,
                completed_at=as_utc(self.completed_at),
            )
        else:
            state = Expired()

        return Trade(
            id=self.id,
            asset_id=self.asset_id,
            seller_node=self.seller_node,
            buyer_node=self.buyer_node,
            price_units=self.price_units,
            lock_timeout=self.lock_timeout,
            created_at=as_utc(self.created_at),
            expires_at=as_utc(self.expires_at),
            state=state,
        )
