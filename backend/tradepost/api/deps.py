"""API dependencies for caller identity and cron authorization."""

from fastapi import Depends, HTTPException, status, Header
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from tradepost.config import settings
from tradepost.database import get_db
from tradepost.models.profile import Profile


async def get_current_user_id(
    x_user_id: str = Header(..., description="Authenticated user id from the session provider"),
    db: AsyncSession = Depends(get_db)
) -> str:
    """
    Dependency that resolves the caller's user id.

    Authentication happens upstream; the session provider forwards the
    signed-in user's id in the X-User-Id header.

    Raises:
        HTTPException: 401 if the id does not belong to a known profile
    """
    result = await db.execute(select(Profile.id).where(Profile.id == x_user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "UNKNOWN_USER",
                "message": "No profile for the supplied user id"
            }
        )
    return x_user_id


async def verify_cron_secret(
    authorization: str | None = Header(None)
) -> None:
    """
    Dependency guarding scheduled-job endpoints.

    Raises:
        HTTPException: 401 unless Authorization is "Bearer <CRON_SECRET>"
    """
    if not settings.CRON_SECRET or authorization != f"Bearer {settings.CRON_SECRET}":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "INVALID_CRON_SECRET",
                "message": "Unauthorized"
            }
        )
