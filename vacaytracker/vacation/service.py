"""Vacation service — request lifecycle, review and reporting.

Lifecycle writes run inside ``unit_of_work`` so a request transition and its
balance deduction commit together or not at all.  Each transition is claimed
with a conditional UPDATE on ``status = 'pending'``: when several reviewers
race on one request, exactly one UPDATE matches and every other caller gets
``InvalidStatusError``.  Notifications go out only after commit.
"""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vacaytracker.common.audit import create_audit_entry
from vacaytracker.common.constants import (
    DEFAULT_PAGE_SIZE,
    InvalidTransition,
    NotificationType,
    VacationAction,
    VacationStatus,
    next_status,
)
from vacaytracker.common.exceptions import (
    CannotCancelApprovedError,
    CannotCancelRejectedError,
    DateInPastError,
    ForbiddenException,
    InvalidDateRangeError,
    InvalidStatusError,
    NotFoundException,
    OverlappingRequestError,
    ValidationException,
)
from vacaytracker.common.pagination import PaginatedResponse, paginate
from vacaytracker.config import settings
from vacaytracker.database import unit_of_work
from vacaytracker.notifications.service import NotificationService, VacationEvent
from vacaytracker.settings.service import SettingsService
from vacaytracker.users import ledger
from vacaytracker.users.models import User
from vacaytracker.users.schemas import UserBrief
from vacaytracker.vacation.calculator import chargeable_days
from vacaytracker.vacation.models import VacationRequest
from vacaytracker.vacation.overlap import has_overlap
from vacaytracker.vacation.schemas import (
    MonthlyStatsOut,
    TeamCalendarOut,
    TeamVacationEntry,
    VacationRequestCreate,
    VacationRequestOut,
)

logger = logging.getLogger(__name__)

_REVIEW_EVENTS = {
    VacationAction.approve: NotificationType.vacation_approved,
    VacationAction.reject: NotificationType.vacation_rejected,
}


# ── Helpers ─────────────────────────────────────────────────────────


def _to_out(req: VacationRequest, user: Optional[User] = None) -> VacationRequestOut:
    out = VacationRequestOut.model_validate(req)
    if user is not None:
        out.requester = UserBrief.model_validate(user)
    return out


def _snapshot(req: VacationRequest) -> dict[str, Any]:
    """JSON-safe view of a request for the audit trail."""
    return {
        "status": req.status.value,
        "start_date": req.start_date.isoformat(),
        "end_date": req.end_date.isoformat(),
        "total_days": req.total_days,
        "reviewed_by": str(req.reviewed_by) if req.reviewed_by else None,
        "rejection_reason": req.rejection_reason,
    }


def _event(
    type: NotificationType, req: VacationRequest, user: User,
) -> VacationEvent:
    return VacationEvent(
        type=type,
        request_id=req.id,
        user_id=req.user_id,
        user_name=user.name,
        start_date=req.start_date,
        end_date=req.end_date,
        total_days=req.total_days,
        rejection_reason=req.rejection_reason,
    )


def _cancel_error(current: VacationStatus) -> Exception:
    if current == VacationStatus.approved:
        return CannotCancelApprovedError()
    if current == VacationStatus.rejected:
        return CannotCancelRejectedError()
    return InvalidStatusError(current, VacationAction.cancel.value)


def _month_bounds(month: int, year: int) -> tuple[date, date]:
    errors: dict[str, list[str]] = {}
    if not 1 <= month <= 12:
        errors["month"] = ["Month must be between 1 and 12."]
    if not 2000 <= year <= 2100:
        errors["year"] = ["Year must be between 2000 and 2100."]
    if errors:
        raise ValidationException(errors)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


# ── Service ─────────────────────────────────────────────────────────


class VacationService:
    """All business logic for vacation requests."""

    @staticmethod
    async def _load(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        for_update: bool = False,
        with_user: bool = False,
    ) -> VacationRequest:
        """Fetch a request straight from the database, bypassing stale copies."""
        query = (
            select(VacationRequest)
            .where(VacationRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        if with_user:
            query = query.options(selectinload(VacationRequest.user))
        req = (await db.execute(query)).scalar_one_or_none()
        if req is None:
            raise NotFoundException("VacationRequest", request_id)
        return req

    @staticmethod
    async def _claim(
        tx: AsyncSession,
        request_id: uuid.UUID,
        **values: Any,
    ) -> Optional[VacationStatus]:
        """Move a pending request to ``values['status']``.

        Returns ``None`` on success, or the status another transaction left
        the row in when the claim lost.
        """
        result = await tx.execute(
            update(VacationRequest)
            .where(
                VacationRequest.id == request_id,
                VacationRequest.status == VacationStatus.pending,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return None
        return (
            await tx.execute(
                select(VacationRequest.status).where(VacationRequest.id == request_id)
            )
        ).scalar_one()

    # ═════════════════════════════════════════════════════════════════
    # Create
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def create(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: VacationRequestCreate,
        *,
        today: Optional[date] = None,
    ) -> VacationRequestOut:
        """Submit a new request in ``pending`` state.

        The balance is neither checked nor touched here; it is charged on
        approval.  ``total_days`` is computed once, from the weekend policy
        in force now.
        """
        if data.start_date > data.end_date:
            raise InvalidDateRangeError(data.start_date, data.end_date)

        today = today or datetime.now(timezone.utc).date()
        if settings.REJECT_PAST_START_DATES and data.start_date < today:
            raise DateInPastError(data.start_date, today)

        async with unit_of_work(db) as tx:
            # Serialises concurrent creates for the same user.
            user = (
                await tx.execute(
                    select(User).where(User.id == user_id).with_for_update()
                )
            ).scalar_one_or_none()
            if user is None:
                raise NotFoundException("User", user_id)

            if await has_overlap(
                tx, user_id, data.start_date, data.end_date, lock=True,
            ):
                logger.info(
                    "Rejected overlapping request %s..%s",
                    data.start_date,
                    data.end_date,
                    extra={"user_id": str(user_id)},
                )
                raise OverlappingRequestError()

            policy = await SettingsService.get_weekend_policy(tx)
            total_days = chargeable_days(data.start_date, data.end_date, policy)

            req = VacationRequest(
                user_id=user_id,
                start_date=data.start_date,
                end_date=data.end_date,
                total_days=total_days,
                reason=data.reason,
                status=VacationStatus.pending,
            )
            tx.add(req)
            await tx.flush()
            await tx.refresh(req)

            await create_audit_entry(
                tx,
                action="create",
                entity_type="vacation_request",
                entity_id=req.id,
                actor_id=user_id,
                new_values=_snapshot(req),
            )

            result = _to_out(req, user)
            event = _event(NotificationType.vacation_requested, req, user)

        logger.info(
            "Vacation request %s created",
            result.id,
            extra={
                "request_id": str(result.id),
                "user_id": str(user_id),
                "total_days": total_days,
            },
        )
        await NotificationService.dispatch(db, event)
        return result

    # ═════════════════════════════════════════════════════════════════
    # Review (approve / reject)
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def review(
        db: AsyncSession,
        request_id: uuid.UUID,
        outcome: VacationAction,
        reviewer_id: uuid.UUID,
        rejection_reason: Optional[str] = None,
    ) -> VacationRequestOut:
        """Approve or reject a pending request.

        Approval deducts ``total_days`` from the owner's balance in the same
        transaction; if the balance is short, nothing is written and the
        request stays pending.
        """
        if outcome not in _REVIEW_EVENTS:
            raise ValueError(f"review outcome must be approve or reject, got {outcome}")

        now = datetime.now(timezone.utc)

        async with unit_of_work(db) as tx:
            req = await VacationService._load(tx, request_id, for_update=True)
            old_values = _snapshot(req)
            try:
                new_status = next_status(req.status, outcome)
            except InvalidTransition as exc:
                raise InvalidStatusError(exc.current, outcome.value) from None

            lost_to = await VacationService._claim(
                tx,
                request_id,
                status=new_status,
                reviewed_by=reviewer_id,
                reviewed_at=now,
                rejection_reason=(
                    rejection_reason if outcome == VacationAction.reject else None
                ),
                updated_at=now,
            )
            if lost_to is not None:
                logger.info(
                    "Lost review race on request %s",
                    request_id,
                    extra={
                        "request_id": str(request_id),
                        "actor_id": str(reviewer_id),
                        "status": lost_to.value,
                    },
                )
                raise InvalidStatusError(lost_to, outcome.value)

            if outcome == VacationAction.approve:
                await ledger.deduct(tx, req.user_id, req.total_days)

            req = await VacationService._load(tx, request_id, with_user=True)
            await create_audit_entry(
                tx,
                action=outcome.value,
                entity_type="vacation_request",
                entity_id=req.id,
                actor_id=reviewer_id,
                old_values=old_values,
                new_values=_snapshot(req),
            )

            result = _to_out(req, req.user)
            event = _event(_REVIEW_EVENTS[outcome], req, req.user)

        logger.info(
            "Vacation request %s %s",
            result.id,
            result.status.value,
            extra={
                "request_id": str(result.id),
                "actor_id": str(reviewer_id),
                "status": result.status.value,
            },
        )
        await NotificationService.dispatch(db, event)
        return result

    @staticmethod
    async def approve(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
    ) -> VacationRequestOut:
        return await VacationService.review(
            db, request_id, VacationAction.approve, reviewer_id,
        )

    @staticmethod
    async def reject(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> VacationRequestOut:
        return await VacationService.review(
            db, request_id, VacationAction.reject, reviewer_id, reason,
        )

    # ═════════════════════════════════════════════════════════════════
    # Cancel
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def cancel(
        db: AsyncSession,
        request_id: uuid.UUID,
        requesting_user_id: uuid.UUID,
    ) -> VacationRequestOut:
        """Owner withdraws a pending request.  The balance is not touched."""
        now = datetime.now(timezone.utc)

        async with unit_of_work(db) as tx:
            req = await VacationService._load(tx, request_id, for_update=True)
            if req.user_id != requesting_user_id:
                raise ForbiddenException("You can only cancel your own vacation requests.")

            old_values = _snapshot(req)
            try:
                next_status(req.status, VacationAction.cancel)
            except InvalidTransition as exc:
                raise _cancel_error(exc.current) from None

            lost_to = await VacationService._claim(
                tx,
                request_id,
                status=VacationStatus.cancelled,
                cancelled_at=now,
                updated_at=now,
            )
            if lost_to is not None:
                logger.info(
                    "Lost cancel race on request %s",
                    request_id,
                    extra={
                        "request_id": str(request_id),
                        "user_id": str(requesting_user_id),
                        "status": lost_to.value,
                    },
                )
                raise _cancel_error(lost_to)

            req = await VacationService._load(tx, request_id, with_user=True)
            await create_audit_entry(
                tx,
                action="cancel",
                entity_type="vacation_request",
                entity_id=req.id,
                actor_id=requesting_user_id,
                old_values=old_values,
                new_values=_snapshot(req),
            )

            result = _to_out(req, req.user)
            event = _event(NotificationType.vacation_cancelled, req, req.user)

        logger.info(
            "Vacation request %s cancelled",
            result.id,
            extra={"request_id": str(result.id), "user_id": str(requesting_user_id)},
        )
        await NotificationService.dispatch(db, event)
        return result

    # ═════════════════════════════════════════════════════════════════
    # Reads
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get(
        db: AsyncSession,
        request_id: uuid.UUID,
        viewer: User,
    ) -> VacationRequestOut:
        """Single request, visible to its owner and to admins."""
        req = await VacationService._load(db, request_id, with_user=True)
        if req.user_id != viewer.id and not viewer.is_admin:
            raise ForbiddenException("You can only view your own vacation requests.")
        return _to_out(req, req.user)

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        status: Optional[VacationStatus] = None,
        year: Optional[int] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> PaginatedResponse[VacationRequestOut]:
        """A user's own requests, latest start date first."""
        query = (
            select(VacationRequest)
            .where(VacationRequest.user_id == user_id)
            .order_by(VacationRequest.start_date.desc(), VacationRequest.id)
        )
        if status is not None:
            query = query.where(VacationRequest.status == status)
        if year is not None:
            query = query.where(
                VacationRequest.start_date >= date(year, 1, 1),
                VacationRequest.start_date <= date(year, 12, 31),
            )

        rows, meta = await paginate(db, query, page=page, page_size=page_size)
        return PaginatedResponse[VacationRequestOut](
            data=[_to_out(r) for r in rows],
            meta=meta,
        )

    @staticmethod
    async def list_pending(db: AsyncSession) -> list[VacationRequestOut]:
        """Admin review queue, oldest submission first."""
        result = await db.execute(
            select(VacationRequest)
            .where(VacationRequest.status == VacationStatus.pending)
            .options(selectinload(VacationRequest.user))
            .order_by(VacationRequest.created_at, VacationRequest.start_date)
        )
        return [_to_out(r, r.user) for r in result.scalars().all()]

    @staticmethod
    async def list_team(
        db: AsyncSession,
        month: int,
        year: int,
    ) -> TeamCalendarOut:
        """Approved absences that touch the given month."""
        month_start, month_end = _month_bounds(month, year)
        result = await db.execute(
            select(VacationRequest, User.name)
            .join(User, VacationRequest.user_id == User.id)
            .where(
                VacationRequest.status == VacationStatus.approved,
                VacationRequest.start_date <= month_end,
                VacationRequest.end_date >= month_start,
            )
            .order_by(VacationRequest.start_date, User.name)
        )
        entries = [
            TeamVacationEntry(
                id=req.id,
                user_id=req.user_id,
                user_name=name,
                start_date=req.start_date,
                end_date=req.end_date,
                total_days=req.total_days,
            )
            for req, name in result.all()
        ]
        return TeamCalendarOut(
            month=month, year=year, entries=entries, total_entries=len(entries),
        )

    @staticmethod
    async def monthly_stats(
        db: AsyncSession,
        year: int,
        month: int,
    ) -> MonthlyStatsOut:
        """Counts per status for requests starting in the month."""
        month_start, month_end = _month_bounds(month, year)
        result = await db.execute(
            select(
                VacationRequest.status,
                func.count(),
                func.coalesce(func.sum(VacationRequest.total_days), 0),
            )
            .where(
                VacationRequest.start_date >= month_start,
                VacationRequest.start_date <= month_end,
            )
            .group_by(VacationRequest.status)
        )

        stats = MonthlyStatsOut(month=month, year=year)
        for status, count, days in result.all():
            setattr(stats, status.value, count)
            if status == VacationStatus.approved:
                stats.approved_days = int(days)
        return stats
