"""Trade lifecycle state machine.

Pure transition logic: every function takes the current Trade (and the
operation's inputs) and returns the next Trade or raises. Nothing here touches
storage; the registry applies these functions inside compare-and-transition.

    pending ──submit_seller──▶ awaiting_buyer ──submit_buyer──▶ ready_to_settle
       │                                                              │
     expire                                                         settle
       ▼                                                              ▼
    expired                                                       completed

Status is checked before inputs. Artifacts are checked for presence only.
"""

import secrets
from datetime import datetime
from enum import Enum

from coordinator.errors import InvalidInput, InvalidState
from coordinator.models.trade import (
    AwaitingBuyer,
    Completed,
    Expired,
    ReadyToSettle,
    Trade,
    TradeStatus,
)
from coordinator.utils.constants import (
    DEFAULT_LOCK_TIMEOUT,
    MAX_LOCK_TIMEOUT,
    TRADE_ID_BYTES,
    TRADE_TTL,
)


class Operation(str, Enum):
    SUBMIT_SELLER = "submit_seller"
    SUBMIT_BUYER = "submit_buyer"
    SETTLE = "settle"
    EXPIRE = "expire"


# operation -> (required status, resulting status)
TRANSITIONS: dict[Operation, tuple[TradeStatus, TradeStatus]] = {
    Operation.SUBMIT_SELLER: (TradeStatus.PENDING, TradeStatus.AWAITING_BUYER),
    Operation.SUBMIT_BUYER: (TradeStatus.AWAITING_BUYER, TradeStatus.READY_TO_SETTLE),
    Operation.SETTLE: (TradeStatus.READY_TO_SETTLE, TradeStatus.COMPLETED),
    Operation.EXPIRE: (TradeStatus.PENDING, TradeStatus.EXPIRED),
}


def new_trade_id() -> str:
    return secrets.token_hex(TRADE_ID_BYTES)


def _require_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required")
    return value


def _optional_text(value, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{field} must be a string")
    return value.strip() or None


def _positive_int(value, field: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{field} must be an integer")
    if value <= 0:
        raise InvalidInput(f"{field} must be positive")
    return value


def ensure_allowed(trade: Trade, operation: Operation, now: datetime):
    """Raise InvalidState unless ``operation`` may run on ``trade`` at ``now``."""
    required, _ = TRANSITIONS[operation]
    if trade.status is not required:
        raise InvalidState(trade.status)

    if operation is Operation.EXPIRE:
        if now < trade.expires_at:
            raise InvalidState(
                trade.status,
                f"Trade is pending until {trade.expires_at.isoformat()}",
            )
    elif trade.is_expired(now):
        # A stale pending trade is eligible for expiry and nothing else
        raise InvalidState(
            trade.status,
            f"Trade expired at {trade.expires_at.isoformat()}",
        )


def create(
    trade_id: str,
    asset_id,
    seller_node,
    price_units,
    now: datetime,
    buyer_node=None,
    lock_timeout=None,
) -> Trade:
    """Build a new pending trade. Raises InvalidInput on bad fields."""
    asset_id = _require_text(asset_id, "asset_id").strip()
    seller_node = _require_text(seller_node, "seller_node").strip()
    buyer_node = _optional_text(buyer_node, "buyer_node")
    price_units = _positive_int(price_units, "price_units")

    if lock_timeout is None:
        lock_timeout = DEFAULT_LOCK_TIMEOUT
    lock_timeout = _positive_int(lock_timeout, "lock_timeout")
    if lock_timeout > MAX_LOCK_TIMEOUT:
        raise InvalidInput(f"lock_timeout must be at most {MAX_LOCK_TIMEOUT}")

    return Trade(
        id=trade_id,
        asset_id=asset_id,
        seller_node=seller_node,
        buyer_node=buyer_node,
        price_units=price_units,
        lock_timeout=lock_timeout,
        created_at=now,
        expires_at=now + TRADE_TTL,
    )


def submit_seller(trade: Trade, seller_artifact, now: datetime) -> Trade:
    ensure_allowed(trade, Operation.SUBMIT_SELLER, now)
    seller_artifact = _require_text(seller_artifact, "seller_artifact")
    return trade.model_copy(update={"state": AwaitingBuyer(seller_artifact=seller_artifact)})


def submit_buyer(
    trade: Trade,
    lock_hash,
    buyer_artifact,
    now: datetime,
    buyer_node=None,
) -> Trade:
    """Record the buyer's lock hash and countersigned artifact.

    ``buyer_node`` fills in the buyer's payment endpoint when the trade was
    created without one; if the trade already names a buyer it must match.
    """
    ensure_allowed(trade, Operation.SUBMIT_BUYER, now)
    lock_hash = _require_text(lock_hash, "lock_hash")
    buyer_artifact = _require_text(buyer_artifact, "buyer_artifact")
    buyer_node = _optional_text(buyer_node, "buyer_node")

    update = {
        "state": ReadyToSettle(
            seller_artifact=trade.seller_artifact,
            buyer_artifact=buyer_artifact,
            lock_hash=lock_hash,
        )
    }
    if buyer_node is not None:
        if trade.buyer_node is not None and trade.buyer_node != buyer_node:
            raise InvalidInput("buyer_node does not match the trade's buyer")
        update["buyer_node"] = buyer_node
    return trade.model_copy(update=update)


def settle(trade: Trade, settlement_ref, preimage, now: datetime) -> Trade:
    # The preimage is not checked against lock_hash; proof of payment is the
    # payment node's concern.
    ensure_allowed(trade, Operation.SETTLE, now)
    settlement_ref = _require_text(settlement_ref, "settlement_ref")
    preimage = _require_text(preimage, "preimage")
    return trade.model_copy(update={
        "state": Completed(
            seller_artifact=trade.seller_artifact,
            buyer_artifact=trade.buyer_artifact,
            lock_hash=trade.lock_hash,
            settlement_ref=settlement_ref,
            preimage=preimage,
            completed_at=now,
        )
    })


def expire(trade: Trade, now: datetime) -> Trade:
    ensure_allowed(trade, Operation.EXPIRE, now)
    return trade.model_copy(update={"state": Expired()})
