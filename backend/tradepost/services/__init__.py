"""Business logic services package."""

from tradepost.services.trade_service import (
    Balance,
    BalanceDirection,
    compute_balance,
    compute_offer_value,
    effective_status,
    trade_service,
    validate_proposal,
)
from tradepost.services.negotiation_agent_service import negotiation_agent_service, parse_offer_amount
from tradepost.services.notification_service import create_notification, get_inbox, mark_as_read

__all__ = [
    # Trade service
    "Balance",
    "BalanceDirection",
    "compute_balance",
    "compute_offer_value",
    "effective_status",
    "trade_service",
    "validate_proposal",
    # Negotiation agent service
    "negotiation_agent_service",
    "parse_offer_amount",
    # Notification service
    "create_notification",
    "get_inbox",
    "mark_as_read",
]
