"""Vacation routers — employee self-service and the admin review queue.

All endpoints require authentication; ``admin_router`` additionally requires
the admin role.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.auth.dependencies import get_current_user, require_admin
from vacaytracker.common.constants import VacationStatus
from vacaytracker.common.pagination import PaginatedResponse, PaginationParams
from vacaytracker.database import get_db
from vacaytracker.users.models import User
from vacaytracker.vacation.schemas import (
    MonthlyStatsOut,
    TeamCalendarOut,
    VacationRejectRequest,
    VacationRequestCreate,
    VacationRequestOut,
)
from vacaytracker.vacation.service import VacationService

router = APIRouter(prefix="", tags=["vacation"])
admin_router = APIRouter(prefix="", tags=["admin"])


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=VacationRequestOut, status_code=201)
async def create_request(
    body: VacationRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a vacation request. Checks dates and overlap; the balance is charged on approval."""
    return await VacationService.create(db, user.id, body)


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=PaginatedResponse[VacationRequestOut])
async def list_my_requests(
    status: Optional[VacationStatus] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user's requests, newest first."""
    return await VacationService.list_for_user(
        db,
        user.id,
        status=status,
        year=year,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=VacationRequestOut)
async def get_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await VacationService.get(db, request_id, user)


# ── POST /requests/{id}/cancel ──────────────────────────────────────

@router.post("/requests/{request_id}/cancel", response_model=VacationRequestOut)
async def cancel_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw one of your own pending requests."""
    return await VacationService.cancel(db, request_id, user.id)


# ── GET /team ───────────────────────────────────────────────────────

@router.get("/team", response_model=TeamCalendarOut)
async def team_calendar(
    month: int = Query(...),
    year: int = Query(...),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Approved vacations overlapping the month, for everyone."""
    return await VacationService.list_team(db, month, year)


# ═══════════════════════════════════════════════════════════════════
# ADMIN
# ═══════════════════════════════════════════════════════════════════

@admin_router.get("/pending", response_model=list[VacationRequestOut])
async def list_pending(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Review queue, oldest first."""
    return await VacationService.list_pending(db)


@admin_router.put("/{request_id}/approve", response_model=VacationRequestOut)
async def approve_request(
    request_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request and deduct its days from the owner's balance."""
    return await VacationService.approve(db, request_id, admin.id)


@admin_router.put("/{request_id}/reject", response_model=VacationRequestOut)
async def reject_request(
    request_id: uuid.UUID,
    body: Optional[VacationRejectRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    reason = body.reason if body else None
    return await VacationService.reject(db, request_id, admin.id, reason)


@admin_router.get("/stats", response_model=MonthlyStatsOut)
async def monthly_stats(
    month: int = Query(...),
    year: int = Query(...),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await VacationService.monthly_stats(db, year, month)
