"""Item database model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
import uuid

from sqlalchemy import String, Text, Numeric, ForeignKey, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradepost.database import Base


class ItemStatus(str, Enum):
    """Item lifecycle status enum."""
    ACTIVE = "active"
    RESERVED = "reserved"
    SOLD = "sold"


class Item(Base):
    """A unit of inventory owned by exactly one seller."""

    __tablename__ = "items"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Owner
    seller_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Listing Details
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    condition: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    minimum_price: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True
    )  # Floor for the negotiation agent, never shown to buyers

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ItemStatus.ACTIVE.value,
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    # Relationships
    seller: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="items"
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, title={self.title}, price=${self.price})>"
