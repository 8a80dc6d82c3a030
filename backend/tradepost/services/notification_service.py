"""Notification service for telling trade parties about each other's actions."""

from typing import List, Optional, Dict, Any
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func

from tradepost.core.exceptions import NotFoundError, NotAuthorizedError
from tradepost.models.notification import Notification


async def create_notification(
    db: AsyncSession,
    notification_type: str,
    from_user_id: str,
    to_user_id: str,
    trade_offer_id: Optional[str],
    content_data: Dict[str, Any],
    commit: bool = True
) -> Notification:
    """
    Create a notification for the other party of a trade.

    Args:
        db: Database session
        notification_type: Type of notification
        from_user_id: User whose action triggered it
        to_user_id: Recipient
        trade_offer_id: Related trade proposal
        content_data: Notification content
        commit: Commit immediately (False when part of a larger unit of work)

    Returns:
        Created notification
    """
    notification = Notification(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        trade_offer_id=trade_offer_id,
        notification_type=notification_type,
        content=content_data,
    )

    db.add(notification)
    if commit:
        await db.commit()
        await db.refresh(notification)

    return notification


async def get_inbox(
    db: AsyncSession,
    user_id: str,
    unread_only: bool = False,
    trade_offer_id: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0
) -> tuple[List[Notification], int, int]:
    """
    Get notifications for a user's inbox.

    Returns:
        Tuple of (notifications, total_count, unread_count)
    """
    query = select(Notification).where(Notification.to_user_id == user_id)

    if unread_only:
        query = query.where(Notification.read_at.is_(None))

    if trade_offer_id:
        query = query.where(Notification.trade_offer_id == trade_offer_id)

    if since:
        query = query.where(Notification.created_at >= since)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total_count = total_result.scalar()

    unread_query = select(func.count()).where(
        and_(
            Notification.to_user_id == user_id,
            Notification.read_at.is_(None)
        )
    )
    unread_result = await db.execute(unread_query)
    unread_count = unread_result.scalar()

    query = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    result = await db.execute(query)
    notifications = list(result.scalars().all())

    return notifications, total_count, unread_count


async def mark_as_read(
    db: AsyncSession,
    notification_id: str,
    user_id: str
) -> Notification:
    """
    Mark a notification as read.

    Raises:
        NotFoundError: If the notification does not exist
        NotAuthorizedError: If it belongs to someone else
    """
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    notification = result.scalar_one_or_none()

    if not notification:
        raise NotFoundError("Notification not found")

    if notification.to_user_id != user_id:
        raise NotAuthorizedError("Not authorized - this notification is not for you")

    if notification.read_at is None:
        notification.read_at = datetime.utcnow()
        await db.commit()
        await db.refresh(notification)

    return notification
