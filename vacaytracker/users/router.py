"""Admin user router — accounts and vacation balances.

All endpoints require the admin role.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.auth.dependencies import require_admin
from vacaytracker.common.constants import UserRole
from vacaytracker.common.pagination import PaginatedResponse, PaginationParams
from vacaytracker.database import get_db
from vacaytracker.users.models import User
from vacaytracker.users.schemas import (
    BalanceResetOut,
    BalanceResetRequest,
    BalanceUpdate,
    UserCreate,
    UserOut,
    UserUpdate,
)
from vacaytracker.users.service import UserService

router = APIRouter(prefix="", tags=["admin"])


@router.get("", response_model=PaginatedResponse[UserOut])
async def list_users(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_users(
        db,
        role=role,
        search=search,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create an account; the balance defaults to the configured allowance."""
    return await UserService.create_user(db, body, actor_id=admin.id)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: uuid.UUID,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Change email, name or role."""
    return await UserService.update_user(db, user_id, body, actor_id=admin.id)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account. Admins cannot delete themselves or the last admin."""
    await UserService.delete_user(db, user_id, actor_id=admin.id)


@router.put("/{user_id}/balance", response_model=UserOut)
async def update_balance(
    user_id: uuid.UUID,
    body: BalanceUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Overwrite one user's remaining vacation days."""
    return await UserService.update_balance(
        db, user_id, body.vacation_balance, actor_id=admin.id,
    )


@router.post("/reset-balances", response_model=BalanceResetOut)
async def reset_balances(
    body: Optional[BalanceResetRequest] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set every employee's balance, e.g. at the start of a vacation year."""
    value = body.vacation_balance if body else None
    return await UserService.reset_all_balances(db, value, actor_id=admin.id)
