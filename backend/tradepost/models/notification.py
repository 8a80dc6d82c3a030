"""Notification database model."""

from datetime import datetime
import uuid

from sqlalchemy import String, ForeignKey, TIMESTAMP
from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradepost.database import Base


class Notification(Base):
    """Message telling one party about the other party's trade activity."""

    __tablename__ = "notifications"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Foreign Keys
    from_user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    to_user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    trade_offer_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("trade_offers.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    # Notification Details
    notification_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )  # trade_proposed|trade_accepted|trade_rejected|trade_expired
    content: Mapped[dict] = mapped_column(
        JSON,
        nullable=False
    )

    # Read Status
    read_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP,
        nullable=True,
        index=True
    )

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=datetime.utcnow
    )

    # Relationships
    from_user: Mapped["Profile"] = relationship(
        "Profile",
        foreign_keys=[from_user_id]
    )
    to_user: Mapped["Profile"] = relationship(
        "Profile",
        foreign_keys=[to_user_id]
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.notification_type}, to={self.to_user_id})>"
