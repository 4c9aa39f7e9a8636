"""Settings service — read and update the singleton settings row."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vacaytracker.common.audit import create_audit_entry
from vacaytracker.common.constants import DEFAULT_RESET_MONTH, SETTINGS_ROW_ID
from vacaytracker.config import settings as app_config
from vacaytracker.database import unit_of_work
from vacaytracker.settings.models import AppSettings
from vacaytracker.settings.schemas import (
    AppSettingsOut,
    AppSettingsUpdate,
    PublicSettingsOut,
    WeekendPolicy,
)

logger = logging.getLogger(__name__)


class SettingsService:
    """Static methods around the ``app_settings`` row."""

    @staticmethod
    async def _get_or_create(db: AsyncSession) -> AppSettings:
        row = (
            await db.execute(
                select(AppSettings).where(AppSettings.id == SETTINGS_ROW_ID)
            )
        ).scalar_one_or_none()
        if row is not None:
            return row

        row = AppSettings(
            id=SETTINGS_ROW_ID,
            weekend_policy=WeekendPolicy().model_dump(),
            default_vacation_days=app_config.DEFAULT_VACATION_DAYS,
            vacation_reset_month=DEFAULT_RESET_MONTH,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        logger.info("Created default application settings")
        return row

    @staticmethod
    async def get(db: AsyncSession) -> AppSettingsOut:
        row = await SettingsService._get_or_create(db)
        return AppSettingsOut.model_validate(row)

    @staticmethod
    async def get_public(db: AsyncSession) -> PublicSettingsOut:
        row = await SettingsService._get_or_create(db)
        return PublicSettingsOut.model_validate(row)

    @staticmethod
    async def get_weekend_policy(db: AsyncSession) -> WeekendPolicy:
        """Policy in force right now; used when a request's days are computed."""
        row = await SettingsService._get_or_create(db)
        return WeekendPolicy.model_validate(row.weekend_policy)

    @staticmethod
    async def get_default_vacation_days(db: AsyncSession) -> int:
        row = await SettingsService._get_or_create(db)
        return row.default_vacation_days

    @staticmethod
    async def update(
        db: AsyncSession,
        data: AppSettingsUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AppSettingsOut:
        """Apply a partial update.

        Changing the weekend policy affects only requests created afterwards;
        stored ``total_days`` values are never recomputed.
        """
        async with unit_of_work(db) as tx:
            row = await SettingsService._get_or_create(tx)
            old_values = {
                "weekend_policy": row.weekend_policy,
                "default_vacation_days": row.default_vacation_days,
                "vacation_reset_month": row.vacation_reset_month,
            }

            changes = data.model_dump(exclude_unset=True, exclude_none=True)
            if "weekend_policy" in changes:
                row.weekend_policy = data.weekend_policy.model_dump()
            if "default_vacation_days" in changes:
                row.default_vacation_days = data.default_vacation_days
            if "vacation_reset_month" in changes:
                row.vacation_reset_month = data.vacation_reset_month

            await tx.flush()
            await tx.refresh(row)

            await create_audit_entry(
                tx,
                action="update",
                entity_type="app_settings",
                actor_id=actor_id,
                old_values=old_values,
                new_values={
                    "weekend_policy": row.weekend_policy,
                    "default_vacation_days": row.default_vacation_days,
                    "vacation_reset_month": row.vacation_reset_month,
                },
            )
            result = AppSettingsOut.model_validate(row)

        logger.info("Settings updated", extra={"actor_id": str(actor_id)})
        return result
