"""Settings routers — admin management and the read-only public view."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.auth.dependencies import get_current_user, require_admin
from vacaytracker.database import get_db
from vacaytracker.settings.schemas import (
    AppSettingsOut,
    AppSettingsUpdate,
    PublicSettingsOut,
)
from vacaytracker.settings.service import SettingsService
from vacaytracker.users.models import User

router = APIRouter(prefix="", tags=["admin"])
public_router = APIRouter(prefix="", tags=["settings"])


@router.get("", response_model=AppSettingsOut)
async def get_settings(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await SettingsService.get(db)


@router.put("", response_model=AppSettingsOut)
async def update_settings(
    body: AppSettingsUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. A new weekend policy applies to requests created afterwards."""
    return await SettingsService.update(db, body, actor_id=admin.id)


@public_router.get("/public", response_model=PublicSettingsOut)
async def get_public_settings(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Annual allowance and reset month, readable by every signed-in user."""
    return await SettingsService.get_public(db)
