"""Profile database model."""

from datetime import datetime
from typing import List
import uuid

from sqlalchemy import String, Boolean, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradepost.database import Base


class Profile(Base):
    """Marketplace user profile with trading preferences."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Trading preferences
    open_to_trades: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True
    )
    negotiation_aggressiveness: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="balanced"
    )  # passive|balanced|aggressive|very_aggressive

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow
    )

    # Relationships
    items: Mapped[List["Item"]] = relationship(
        "Item",
        back_populates="seller"
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, name={self.full_name})>"
