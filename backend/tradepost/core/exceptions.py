"""
Domain exceptions for trading and negotiation.

Every failure the services raise derives from MarketError, which carries a
machine-readable code and the HTTP status the API layer answers with.
MarketError subclasses ValueError so callers that only know about
ValueError keep working.
"""

from typing import Any, Optional


class MarketError(ValueError):
    """Base class for trading and negotiation failures."""

    code = "MARKET_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"success": False, "error": self.message, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


# Validation

class ValidationError(MarketError):
    """Raised when a request is malformed or breaks a business rule."""

    code = "VALIDATION_ERROR"
    status_code = 400


class EmptyOfferError(ValidationError):
    """Raised when a proposal offers neither items nor cash."""

    code = "EMPTY_OFFER"

    def __init__(self):
        super().__init__("Select at least one item or add cash to your offer")


class CashCeilingExceededError(ValidationError):
    """Raised when the cash adjustment is above the allowed ceiling."""

    code = "CASH_CEILING_EXCEEDED"

    def __init__(self, cash_adjustment, ceiling):
        super().__init__(
            f"Cash adjustment cannot exceed ${ceiling}",
            details={"cash_adjustment": str(cash_adjustment), "ceiling": str(ceiling)}
        )


class NegativeCashAdjustmentError(ValidationError):
    """Raised when the cash adjustment is below zero."""

    code = "NEGATIVE_CASH_ADJUSTMENT"

    def __init__(self, cash_adjustment):
        super().__init__(
            "Cash adjustment cannot be negative",
            details={"cash_adjustment": str(cash_adjustment)}
        )


class SelfTradeError(ValidationError):
    """Raised when a user proposes a trade for their own item."""

    code = "SELF_TRADE"

    def __init__(self):
        super().__init__("Cannot trade with yourself")


class OfferedItemUnavailableError(ValidationError):
    """Raised when an offered item is missing, sold, or not owned by the proposer."""

    code = "OFFERED_ITEM_UNAVAILABLE"

    def __init__(self, item_ids):
        super().__init__(
            "Some offered items are not found, not available, or do not belong to you",
            details={"item_ids": list(item_ids)}
        )


class InvalidActionError(ValidationError):
    """Raised for a response action other than accept or reject."""

    code = "INVALID_ACTION"

    def __init__(self, action: str):
        super().__init__(f"Invalid action: {action}. Must be 'accept' or 'reject'")


# Authorization

class AuthorizationError(MarketError):
    """Raised when the caller may not perform the operation."""

    code = "NOT_AUTHORIZED"
    status_code = 403


class NotAuthorizedError(AuthorizationError):
    """Raised when someone other than the target owner responds to a proposal."""

    code = "NOT_AUTHORIZED"


class TradingDisabledError(AuthorizationError):
    """Raised when either party has trading switched off."""

    code = "TRADING_DISABLED"

    def __init__(self):
        super().__init__(
            "Trading is not enabled for one or both users. "
            "Both parties must enable trading in settings."
        )


# Lookup

class NotFoundError(MarketError):
    """Raised when a referenced row does not exist."""

    code = "NOT_FOUND"
    status_code = 404


# State conflicts

class StateConflictError(MarketError):
    """Raised when a proposal is not in a state that allows the operation."""

    code = "STATE_CONFLICT"
    status_code = 409


class AlreadyDecidedError(StateConflictError):
    """Raised when responding to a proposal that is no longer pending."""

    code = "ALREADY_DECIDED"

    def __init__(self, proposal_id: str, status: str):
        super().__init__(
            f"Trade is {status}, cannot respond",
            details={"trade_id": proposal_id, "status": status}
        )


class ExpiredError(StateConflictError):
    """Raised when responding to a proposal past its expiration."""

    code = "EXPIRED"

    def __init__(self, proposal_id: str):
        super().__init__(
            "This trade offer has expired",
            details={"trade_id": proposal_id}
        )


class ItemsNoLongerAvailableError(StateConflictError):
    """Raised when accepting a trade whose items have been sold or moved since it was proposed."""

    code = "ITEMS_NO_LONGER_AVAILABLE"

    def __init__(self, message: str, item_ids):
        super().__init__(message, details={"item_ids": list(item_ids)})


# Negotiation function transport

class TransportError(MarketError):
    """Raised when the negotiation function cannot be reached."""

    code = "TRANSPORT_ERROR"
    status_code = 502


class MalformedAgentReplyError(MarketError):
    """Raised when the negotiation function answers without a usable reply."""

    code = "MALFORMED_AGENT_REPLY"
    status_code = 502
