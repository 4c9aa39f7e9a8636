"""Notifications router — the authenticated user's in-app inbox."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.auth.dependencies import get_current_user
from vacaytracker.database import get_db
from vacaytracker.notifications.schemas import NotificationOut
from vacaytracker.notifications.service import NotificationService
from vacaytracker.users.models import User

router = APIRouter(prefix="", tags=["notifications"])


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest first."""
    return await NotificationService.list_for_user(
        db, user.id, unread_only=unread_only,
    )
