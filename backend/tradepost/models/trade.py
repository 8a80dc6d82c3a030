"""
Trade proposal models for item-for-item (+cash) trading between users.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from sqlalchemy import String, Text, Integer, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradepost.database import Base


class TradeStatus(str, Enum):
    """Trade proposal status enum."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    COMPLETED = "completed"  # Set by the fulfillment workflow after handoff


class TradeProposal(Base):
    """A directed offer from a proposer to the owner of a target item."""

    __tablename__ = "trade_offers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Participants
    target_item_id: Mapped[str] = mapped_column(String(36), ForeignKey("items.id"), index=True)
    proposer_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), index=True)
    target_owner_id: Mapped[str] = mapped_column(String(36), ForeignKey("profiles.id"), index=True)

    # Offer
    cash_adjustment: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_offered_value: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    # Current state
    status: Mapped[str] = mapped_column(String(20), default=TradeStatus.PENDING.value, index=True)
    # pending | accepted | rejected | expired | completed

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, default=datetime.utcnow)
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP, index=True)
    responded_at: Mapped[datetime | None] = mapped_column(TIMESTAMP, nullable=True)

    # Relationships
    offered_items: Mapped[List["TradeItem"]] = relationship(
        "TradeItem",
        back_populates="trade_offer",
        order_by="TradeItem.position",
        lazy="selectin"
    )
    target_item: Mapped["Item"] = relationship("Item", foreign_keys=[target_item_id])
    proposer: Mapped["Profile"] = relationship("Profile", foreign_keys=[proposer_id])
    target_owner: Mapped["Profile"] = relationship("Profile", foreign_keys=[target_owner_id])

    @property
    def offered_item_ids(self) -> list[str]:
        return [trade_item.item_id for trade_item in self.offered_items]

    def __repr__(self) -> str:
        return f"<TradeProposal(id={self.id}, status={self.status}, target={self.target_item_id})>"


class TradeItem(Base):
    """An item offered as part of a trade proposal."""

    __tablename__ = "trade_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trade_offer_id: Mapped[str] = mapped_column(String(36), ForeignKey("trade_offers.id"), index=True)
    item_id: Mapped[str] = mapped_column(String(36), ForeignKey("items.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)  # Order the proposer listed the item in

    # Relationships
    trade_offer: Mapped["TradeProposal"] = relationship("TradeProposal", back_populates="offered_items")
    item: Mapped["Item"] = relationship("Item")
