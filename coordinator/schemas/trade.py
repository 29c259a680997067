"""Pydantic schemas for the trade API."""

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt, field_validator

from coordinator.models.trade import Trade, TradeStatus
from coordinator.utils.constants import MAX_LOCK_TIMEOUT


def _trim(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


class TradeCreate(BaseModel):
    asset_id: str = Field(min_length=1, max_length=256)
    seller_node: str = Field(min_length=1, max_length=256)
    buyer_node: str | None = Field(default=None, max_length=256)
    price_units: StrictInt = Field(gt=0)
    lock_timeout: StrictInt | None = Field(default=None, gt=0, le=MAX_LOCK_TIMEOUT)

    @field_validator("asset_id", "seller_node")
    @classmethod
    def _trim_required_text(cls, value: str) -> str:
        return _trim(value)


class SellerArtifactSubmit(BaseModel):
    seller_artifact: str


class BuyerParticipationSubmit(BaseModel):
    lock_hash: str
    buyer_artifact: str
    buyer_node: str | None = None


class SettleRequest(BaseModel):
    settlement_ref: str
    preimage: str


class TradeRead(BaseModel):
    id: str
    asset_id: str
    seller_node: str
    buyer_node: str | None
    price_units: int
    lock_timeout: int
    status: TradeStatus
    created_at: datetime
    expires_at: datetime
    completed_at: datetime | None
    seller_artifact: str | None
    buyer_artifact: str | None
    lock_hash: str | None
    settlement_ref: str | None
    preimage: str | None

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeRead":
        return cls(
            id=trade.id,
            asset_id=trade.asset_id,
            seller_node=trade.seller_node,
            buyer_node=trade.buyer_node,
            price_units=trade.price_units,
            lock_timeout=trade.lock_timeout,
            status=trade.status,
            created_at=trade.created_at,
            expires_at=trade.expires_at,
            completed_at=trade.completed_at,
            seller_artifact=trade.seller_artifact,
            buyer_artifact=trade.buyer_artifact,
            lock_hash=trade.lock_hash,
            settlement_ref=trade.settlement_ref,
            preimage=trade.preimage,
        )


class TradeStatsRead(BaseModel):
    total: int
    pending: int
    completed: int
    failed: int
    expired: int
