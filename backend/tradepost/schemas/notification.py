"""Pydantic schemas for Notification validation."""

from datetime import datetime
from typing import Optional, Dict, Any, List

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    """Notification response schema."""
    id: str
    from_user_id: str
    to_user_id: str
    trade_offer_id: Optional[str]
    notification_type: str
    content: Dict[str, Any]
    read_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationList(BaseModel):
    """List of notifications with pagination."""
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class MarkReadResponse(BaseModel):
    """Response when marking a notification as read."""
    notification_id: str
    read_at: datetime
