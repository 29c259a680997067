"""Trade models."""

from coordinator.models.trade import (
    TERMINAL_STATUSES,
    AwaitingBuyer,
    Completed,
    Expired,
    Pending,
    ReadyToSettle,
    Trade,
    TradeStatus,
)
from coordinator.models.trade_row import TradeRow

__all__ = [
    "TERMINAL_STATUSES",
    "AwaitingBuyer",
    "Completed",
    "Expired",
    "Pending",
    "ReadyToSettle",
    "Trade",
    "TradeRow",
    "TradeStatus",
]
