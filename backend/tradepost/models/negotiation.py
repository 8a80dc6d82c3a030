"""
Negotiation models for buyer conversations with the seller's negotiation agent.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import String, Text, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradepost.database import Base


class NegotiationConversation(Base):
    """A single buyer-agent dialogue about one item."""

    __tablename__ = "agent_conversations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Participants
    item_id: Mapped[str] = mapped_column(String(36), ForeignKey("items.id"), index=True)
    buyer_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    # Current state
    status: Mapped[str] = mapped_column(String(20), default="active")
    # active | offer_accepted

    current_offer: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    # The buyer's most recent offer

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    messages: Mapped[List["NegotiationMessage"]] = relationship(
        "NegotiationMessage",
        back_populates="conversation",
        order_by="NegotiationMessage.sequence"
    )
    item: Mapped["Item"] = relationship("Item")


class NegotiationMessage(Base):
    """Individual turns in a negotiation conversation."""

    __tablename__ = "agent_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    conversation_id: Mapped[str] = mapped_column(String(36), ForeignKey("agent_conversations.id"), index=True)
    sequence: Mapped[int] = mapped_column(default=0)  # Insertion order within the conversation

    sender: Mapped[str] = mapped_column(String(10))  # "user" | "ai" | "system"
    content: Mapped[str] = mapped_column(Text)

    message_type: Mapped[str] = mapped_column(String(20), default="text")
    # "text" | "offer" | "response"

    offer_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    counter_offer_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, default=datetime.utcnow)

    # Relationships
    conversation: Mapped["NegotiationConversation"] = relationship(
        "NegotiationConversation",
        back_populates="messages"
    )
