"""Trade lifecycle API."""

from fastapi import APIRouter, Depends

from coordinator.api.deps import get_coordinator
from coordinator.models.trade import TradeStatus
from coordinator.schemas.trade import (
    BuyerParticipationSubmit,
    SellerArtifactSubmit,
    SettleRequest,
    TradeCreate,
    TradeRead,
)
from coordinator.services.coordinator import TradeCoordinator

router = APIRouter(prefix="/api/trades", tags=["trades"])


@router.post("", response_model=TradeRead, status_code=201)
def create_trade(
    data: TradeCreate,
    coordinator: TradeCoordinator = Depends(get_coordinator),
):
    trade = coordinator.create_trade(**data.model_dump())
    return TradeRead.from_trade(trade)


@router.get("", response_model=list[TradeRead])
def list_trades(
    status: TradeStatus | None = None,
    asset_id: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    coordinator: TradeCoordinator = Depends(get_coordinator),
):
    trades = coordinator.list_trades(
        status=status,
        asset_id=asset_id,
        limit=None if limit is None else max(limit, 0),
        offset=max(offset, 0),
    )
    return [TradeRead.from_trade(t) for t in trades]


@router.get("/{trade_id}", response_model=TradeRead)
def get_trade(trade_id: str, coordinator: TradeCoordinator = Depends(get_coordinator)):
    return TradeRead.from_trade(coordinator.get_trade(trade_id))


@router.post("/{trade_id}/seller-artifact", response_model=TradeRead)
async def submit_seller_artifact(
    trade_id: str,
    body: SellerArtifactSubmit,
    coordinator: TradeCoordinator = Depends(get_coordinator),
):
    trade = await coordinator.submit_seller_artifact(trade_id, body.seller_artifact)
    return TradeRead.from_trade(trade)


@router.post("/{trade_id}/buyer-participation", response_model=TradeRead)
async def submit_buyer_participation(
    trade_id: str,
    body: BuyerParticipationSubmit,
    coordinator: TradeCoordinator = Depends(get_coordinator),
):
    trade = await coordinator.submit_buyer_participation(
        trade_id,
        lock_hash=body.lock_hash,
        buyer_artifact=body.buyer_artifact,
        buyer_node=body.buyer_node,
    )
    return TradeRead.from_trade(trade)


@router.post("/{trade_id}/settle", response_model=TradeRead)
async def settle_trade(
    trade_id: str,
    body: SettleRequest,
    coordinator: TradeCoordinator = Depends(get_coordinator),
):
    trade = await coordinator.settle_trade(trade_id, body.settlement_ref, body.preimage)
    return TradeRead.from_trade(trade)
