"""Trade model — one immutable record per swap attempt.

The lifecycle state is a closed tagged union on ``status``: each variant
carries exactly the artifacts that exist at that point of the exchange, so a
pending trade cannot hold a seller artifact and only a completed trade holds
the preimage and settlement reference.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TradeStatus(str, Enum):
    PENDING = "pending"
    AWAITING_BUYER = "awaiting_buyer"
    READY_TO_SETTLE = "ready_to_settle"
    COMPLETED = "completed"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({TradeStatus.COMPLETED, TradeStatus.EXPIRED})


class Pending(BaseModel):
    status: Literal[TradeStatus.PENDING] = TradeStatus.PENDING

    model_config = {"frozen": True}


class AwaitingBuyer(BaseModel):
    status: Literal[TradeStatus.AWAITING_BUYER] = TradeStatus.AWAITING_BUYER
    seller_artifact: str = Field(min_length=1)

    model_config = {"frozen": True}


class ReadyToSettle(BaseModel):
    status: Literal[TradeStatus.READY_TO_SETTLE] = TradeStatus.READY_TO_SETTLE
    seller_artifact: str = Field(min_length=1)
    buyer_artifact: str = Field(min_length=1)
    lock_hash: str = Field(min_length=1)

    model_config = {"frozen": True}


class Completed(BaseModel):
    status: Literal[TradeStatus.COMPLETED] = TradeStatus.COMPLETED
    seller_artifact: str = Field(min_length=1)
    buyer_artifact: str = Field(min_length=1)
    lock_hash: str = Field(min_length=1)
    settlement_ref: str = Field(min_length=1)
    preimage: str = Field(min_length=1)
    completed_at: datetime

    model_config = {"frozen": True}


class Expired(BaseModel):
    status: Literal[TradeStatus.EXPIRED] = TradeStatus.EXPIRED

    model_config = {"frozen": True}


TradeState = Annotated[
    Union[Pending, AwaitingBuyer, ReadyToSettle, Completed, Expired],
    Field(discriminator="status"),
]


class Trade(BaseModel):
    id: str
    asset_id: str
    seller_node: str
    buyer_node: str | None = None
    price_units: int
    lock_timeout: int
    created_at: datetime
    expires_at: datetime
    state: TradeState = Field(default_factory=Pending)

    model_config = {"frozen": True}

    @property
    def status(self) -> TradeStatus:
        return self.state.status

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_expired(self, now: datetime) -> bool:
        """True when the trade is still pending and its deadline has passed."""
        return self.status is TradeStatus.PENDING and now >= self.expires_at

    # Flat accessors; None where the current state does not carry the field

    @property
    def seller_artifact(self) -> str | None:
        return getattr(self.state, "seller_artifact", None)

    @property
    def buyer_artifact(self) -> str | None:
        return getattr(self.state, "buyer_artifact", None)

    @property
    def lock_hash(self) -> str | None:
        return getattr(self.state, "lock_hash", None)

    @property
    def settlement_ref(self) -> str | None:
        return getattr(self.state, "settlement_ref", None)

    @property
    def preimage(self) -> str | None:
        return getattr(self.state, "preimage", None)

    @property
    def completed_at(self) -> datetime | None:
        return getattr(self.state, "completed_at", None)
