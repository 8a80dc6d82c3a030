"""Pydantic schemas package."""

from tradepost.schemas.trade import (
    BalanceResponse,
    TradeProposeRequest,
    TradeRespondRequest,
    BalancePreviewRequest,
    TradeProposeResponse,
    TradeRespondResponse,
    BalancePreviewResponse,
    ExpireSweepResponse,
    TradeProposalResponse,
)
from tradepost.schemas.negotiation import (
    NegotiateRequest,
    NegotiateResponse,
)
from tradepost.schemas.notification import (
    NotificationResponse,
    NotificationList,
    MarkReadResponse,
)

__all__ = [
    # Trade schemas
    "BalanceResponse",
    "TradeProposeRequest",
    "TradeRespondRequest",
    "BalancePreviewRequest",
    "TradeProposeResponse",
    "TradeRespondResponse",
    "BalancePreviewResponse",
    "ExpireSweepResponse",
    "TradeProposalResponse",
    # Negotiation schemas
    "NegotiateRequest",
    "NegotiateResponse",
    # Notification schemas
    "NotificationResponse",
    "NotificationList",
    "MarkReadResponse",
]
