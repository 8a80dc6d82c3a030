"""
Negotiation function schemas.

The chat client speaks camelCase on the wire; fields are declared in
snake_case and aliased. Money goes out as a JSON number and timestamps as
UTC ISO-8601 with a trailing "Z".
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NegotiateRequest(CamelModel):
    """One buyer turn."""
    item_id: str = Field(..., description="Item being negotiated")
    user_message: str = Field(..., min_length=1, description="Buyer's message")
    conversation_id: Optional[str] = Field(None, description="Conversation id from a previous turn")
    buyer_id: Optional[str] = Field(None, description="Buyer's user id")


class NegotiateResponse(CamelModel):
    """Agent reply with structured negotiation fields."""
    success: bool = True
    response: str
    conversation_id: str
    counter_offer_amount: Optional[Decimal] = None
    offer_accepted: bool = False
    expires_at: Optional[datetime] = None
    is_offer: bool = False

    @field_serializer("counter_offer_amount", when_used="json")
    def serialize_counter_offer_amount(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None

    @field_serializer("expires_at", when_used="json")
    def serialize_expires_at(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        # Stored timestamps are naive UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
