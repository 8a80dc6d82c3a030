"""
Trade schemas for proposing and answering item-for-item trades.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal

from pydantic import BaseModel, Field, computed_field

from tradepost.services.trade_service import BalanceDirection


class BalanceResponse(BaseModel):
    """Offer-minus-target difference and its category."""
    difference: Decimal
    direction: BalanceDirection


# Request Schemas

class TradeProposeRequest(BaseModel):
    """Request to propose a trade."""
    target_item_id: str = Field(..., description="Item you want")
    target_seller_id: Optional[str] = Field(None, description="Owner of the target item")
    offered_item_ids: List[str] = Field(default_factory=list, description="Your items to trade away")
    offeror_id: str = Field(..., description="Your user id")
    cash_adjustment: Decimal = Field(Decimal("0"), description="Cash added to your offer")
    message: Optional[str] = Field(None, description="Optional note for the owner")


class TradeRespondRequest(BaseModel):
    """Request to accept or reject a trade."""
    trade_id: str
    user_id: str
    action: str = Field(..., description="Action: accept or reject")


class BalancePreviewRequest(BaseModel):
    """Request for live value feedback while building an offer."""
    target_item_id: str
    offered_item_ids: List[str] = Field(default_factory=list)
    cash_adjustment: Decimal = Decimal("0")


# Response Schemas

class TradeProposeResponse(BaseModel):
    """Result of a successful proposal."""
    success: Literal[True] = True
    trade_offer_id: str
    expires_at: datetime
    total_offered_value: Decimal
    balance: BalanceResponse
    message: str = "Trade offer sent successfully"


class TradeRespondResponse(BaseModel):
    """Result of a successful accept or reject."""
    success: Literal[True] = True
    trade_id: str
    action: str
    status: str


class BalancePreviewResponse(BaseModel):
    """Live value feedback."""
    offer_value: Decimal
    target_value: Decimal
    balance: BalanceResponse


class ExpireSweepResponse(BaseModel):
    """Result of an expiry sweep."""
    success: Literal[True] = True
    expired_count: int
    timestamp: datetime


class TradeProposalResponse(BaseModel):
    """Trade proposal with full details."""
    id: str
    target_item_id: str
    proposer_id: str
    target_owner_id: str
    offered_item_ids: List[str]
    cash_adjustment: Decimal
    message: Optional[str]
    total_offered_value: Decimal
    status: str
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime]

    @computed_field
    @property
    def effective_status(self) -> str:
        """Status as of now: a pending proposal past expiry reads as expired."""
        if self.status == "pending" and datetime.utcnow() >= self.expires_at:
            return "expired"
        return self.status

    class Config:
        from_attributes = True
