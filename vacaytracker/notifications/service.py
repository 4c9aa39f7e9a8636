"""Notification service — in-app notifications for vacation lifecycle events.

Dispatch happens after the lifecycle transaction has committed, in a
transaction of its own.  A failure here is logged and dropped; it can never
undo or fail the transition that triggered it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.common.constants import NotificationType, UserRole
from vacaytracker.database import unit_of_work
from vacaytracker.notifications.models import Notification
from vacaytracker.users.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VacationEvent:
    """Snapshot of a committed transition, detached from any ORM session."""

    type: NotificationType
    request_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    start_date: date
    end_date: date
    total_days: int
    rejection_reason: Optional[str] = None

    @property
    def period(self) -> str:
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"


# Admin-facing events; the others go to the request owner.
_ADMIN_EVENTS = frozenset({
    NotificationType.vacation_requested,
    NotificationType.vacation_cancelled,
})


def _render(event: VacationEvent) -> tuple[str, str]:
    if event.type == NotificationType.vacation_requested:
        return (
            "New Vacation Request",
            f"{event.user_name} requested {event.total_days} day(s) "
            f"from {event.period}.",
        )
    if event.type == NotificationType.vacation_cancelled:
        return (
            "Vacation Request Cancelled",
            f"{event.user_name} cancelled the request for {event.period}.",
        )
    if event.type == NotificationType.vacation_approved:
        return (
            "Vacation Approved",
            f"Your vacation from {event.period} ({event.total_days} day(s)) "
            "has been approved.",
        )
    message = f"Your vacation from {event.period} has been rejected."
    if event.rejection_reason:
        message += f" Reason: {event.rejection_reason}"
    return "Vacation Rejected", message


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType,
        title: str,
        message: str,
        entity_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            entity_id=entity_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def _recipients(db: AsyncSession, event: VacationEvent) -> list[uuid.UUID]:
        if event.type not in _ADMIN_EVENTS:
            return [event.user_id]
        result = await db.execute(select(User.id).where(User.role == UserRole.admin))
        return list(result.scalars().all())

    @staticmethod
    async def dispatch(db: AsyncSession, event: VacationEvent) -> int:
        """Deliver *event*; returns the number of notifications written.

        Never raises on delivery failure.
        """
        title, message = _render(event)
        try:
            async with unit_of_work(db) as tx:
                recipients = await NotificationService._recipients(tx, event)
                for recipient_id in recipients:
                    await NotificationService.create_notification(
                        tx,
                        recipient_id=recipient_id,
                        type=event.type,
                        title=title,
                        message=message,
                        entity_id=event.request_id,
                    )
        except Exception:
            logger.exception(
                "Notification dispatch failed for %s on request %s",
                event.type.value,
                event.request_id,
            )
            return 0
        return len(recipients)

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        unread_only: bool = False,
    ) -> list[Notification]:
        """Newest first."""
        query = (
            select(Notification)
            .where(Notification.recipient_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        return list((await db.execute(query)).scalars().all())
