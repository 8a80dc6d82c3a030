"""
Trade endpoints for proposing and answering item-for-item trades.

Service errors (MarketError) propagate to the application's exception
handler, which renders them as {"success": false, "error", "code"}.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradepost.api.deps import get_db, get_current_user_id, verify_cron_secret
from tradepost.services.trade_service import trade_service, compute_balance
from tradepost.schemas.trade import (
    BalancePreviewRequest,
    BalancePreviewResponse,
    BalanceResponse,
    ExpireSweepResponse,
    TradeProposalResponse,
    TradeProposeRequest,
    TradeProposeResponse,
    TradeRespondRequest,
    TradeRespondResponse,
)

router = APIRouter(prefix="/trades", tags=["trades"])


@router.post("/propose", response_model=TradeProposeResponse)
async def propose_trade(
    request: TradeProposeRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Propose a trade: your items plus optional cash for someone else's item.

    Example:
        ```json
        {
          "target_item_id": "item-123",
          "target_seller_id": "user-456",
          "offered_item_ids": ["item-a", "item-b"],
          "offeror_id": "user-789",
          "cash_adjustment": 25,
          "message": "Would love to swap!"
        }
        ```

    Returns:
        The new proposal's id, expiry, total offered value and balance
    """
    proposal = await trade_service.submit_proposal(
        db=db,
        target_item_id=request.target_item_id,
        proposer_id=request.offeror_id,
        offered_item_ids=request.offered_item_ids,
        cash_adjustment=request.cash_adjustment,
        message=request.message,
        target_owner_id=request.target_seller_id
    )

    _, target_value, _ = await trade_service.preview_balance(db, proposal.target_item_id, [])
    balance = compute_balance(proposal.total_offered_value, target_value)

    return TradeProposeResponse(
        trade_offer_id=proposal.id,
        expires_at=proposal.expires_at,
        total_offered_value=proposal.total_offered_value,
        balance=BalanceResponse(difference=balance.difference, direction=balance.direction)
    )


@router.post("/respond", response_model=TradeRespondResponse)
async def respond_to_trade(
    request: TradeRespondRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Accept or reject a trade addressed to one of your items.

    Examples:

    Accept:
        ```json
        {"trade_id": "trade-1", "user_id": "user-456", "action": "accept"}
        ```

    Reject:
        ```json
        {"trade_id": "trade-1", "user_id": "user-456", "action": "reject"}
        ```
    """
    proposal = await trade_service.respond_to_proposal(
        db=db,
        proposal_id=request.trade_id,
        responder_id=request.user_id,
        action=request.action
    )

    return TradeRespondResponse(
        trade_id=proposal.id,
        action=proposal.status,
        status=proposal.status
    )


@router.post("/balance", response_model=BalancePreviewResponse)
async def preview_balance(
    request: BalancePreviewRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Live value feedback while assembling an offer.

    Returns:
        Offer value, target value and whether the trade is even
    """
    offer_value, target_value, balance = await trade_service.preview_balance(
        db=db,
        target_item_id=request.target_item_id,
        offered_item_ids=request.offered_item_ids,
        cash_adjustment=request.cash_adjustment
    )

    return BalancePreviewResponse(
        offer_value=offer_value,
        target_value=target_value,
        balance=BalanceResponse(difference=balance.difference, direction=balance.direction)
    )


@router.post("/expire", response_model=ExpireSweepResponse, dependencies=[Depends(verify_cron_secret)])
async def expire_trades(db: AsyncSession = Depends(get_db)):
    """
    Expire every pending trade past its expiration (scheduled job).

    Requires `Authorization: Bearer <CRON_SECRET>`.
    """
    expired_count = await trade_service.expire_stale_proposals(db)
    return ExpireSweepResponse(expired_count=expired_count, timestamp=datetime.utcnow())


@router.get("/{trade_id}", response_model=TradeProposalResponse)
async def get_trade(
    trade_id: str,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    Get details of a specific trade.

    Only the proposer and the target item's owner can view it.
    """
    return await trade_service.get_proposal(db=db, proposal_id=trade_id, user_id=current_user_id)


@router.get("", response_model=list[TradeProposalResponse])
async def list_my_trades(
    role: Optional[str] = Query(None, description="proposer (sent) or target (received)"),
    status_filter: Optional[str] = Query(None, description="Filter by status: pending, accepted, rejected, expired, completed"),
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id)
):
    """
    List trades you sent or received, newest first.
    """
    return await trade_service.list_my_proposals(
        db=db,
        user_id=current_user_id,
        role=role,
        status_filter=status_filter
    )
