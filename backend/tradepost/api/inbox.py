"""Inbox API router for trade notifications."""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tradepost.api.deps import get_db, get_current_user_id
from tradepost.schemas.notification import NotificationList, NotificationResponse, MarkReadResponse
from tradepost.services.notification_service import get_inbox, mark_as_read

router = APIRouter()


@router.get("", response_model=NotificationList)
async def get_user_inbox(
    unread_only: bool = Query(False),
    trade_offer_id: Optional[str] = Query(None),
    since: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Get trade notifications for the current user.
    """
    notifications, total, unread_count = await get_inbox(
        db=db,
        user_id=current_user_id,
        unread_only=unread_only,
        trade_offer_id=trade_offer_id,
        since=since,
        limit=limit,
        offset=offset
    )

    return NotificationList(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread_count=unread_count
    )


@router.post("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_notification_read(
    notification_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark a notification as read.
    """
    notification = await mark_as_read(db, notification_id, current_user_id)
    return MarkReadResponse(
        notification_id=notification.id,
        read_at=notification.read_at
    )
