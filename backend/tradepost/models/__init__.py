"""Database models package."""

from tradepost.models.profile import Profile
from tradepost.models.item import Item, ItemStatus
from tradepost.models.trade import TradeProposal, TradeItem, TradeStatus
from tradepost.models.negotiation import NegotiationConversation, NegotiationMessage
from tradepost.models.notification import Notification

__all__ = [
    "Profile",
    "Item",
    "ItemStatus",
    "TradeProposal",
    "TradeItem",
    "TradeStatus",
    "NegotiationConversation",
    "NegotiationMessage",
    "Notification",
]
