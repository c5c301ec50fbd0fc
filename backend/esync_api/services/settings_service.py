"""
eSync+ API — App Settings Service
==================================

What:  Key/value settings grouped by category ("general", "mysql",
       "sidebar" …), stored as text in app_settings.
Who:   Settings routes, SidebarService and SourceDatabaseService.
"""

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.exceptions import ValidationError
from esync_api.models import AppSetting
from esync_api.services.catalog_service import database_errors

logger = logging.getLogger(__name__)


def to_text(value: Any) -> Optional[str]:
    """
    Text form of a setting value.

    Example:
        >>> to_text(True), to_text(3306), to_text({"a": 1})
        ('true', '3306', '{"a": 1}')
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


class SettingsService:

    async def get_category(self, db: AsyncSession, category: str) -> Dict[str, Optional[str]]:
        """Flat {key: value} map of one category; empty when nothing is stored."""
        with database_errors("load settings", category=category):
            result = await db.execute(
                select(AppSetting).where(AppSetting.category == category).order_by(AppSetting.key)
            )
            return {row.key: row.value for row in result.scalars().all()}

    async def get_value(self, db: AsyncSession, category: str, key: str) -> Optional[str]:
        with database_errors("load setting", category=category, key=key):
            return await db.scalar(
                select(AppSetting.value).where(AppSetting.category == category, AppSetting.key == key)
            )

    async def put_category(self, db: AsyncSession, category: str, values: Dict[str, Any]) -> int:
        """
        Upsert every key of `values` under `category`.

        Keys not mentioned are left alone. Returns the number of keys written.
        """
        category = (category or "").strip()
        if not category:
            raise ValidationError(message="Settings category is required", field="category")
        cleaned = {str(k).strip(): to_text(v) for k, v in values.items() if str(k).strip()}

        with database_errors("save settings", category=category):
            result = await db.execute(
                select(AppSetting).where(
                    AppSetting.category == category,
                    AppSetting.key.in_(list(cleaned)),
                )
            )
            existing = {row.key: row for row in result.scalars().all()}
            for key, value in cleaned.items():
                if key in existing:
                    existing[key].value = value
                else:
                    db.add(AppSetting(category=category, key=key, value=value))
            await db.flush()

        logger.info("Saved %d setting(s) in category '%s'", len(cleaned), category)
        return len(cleaned)


settings_service = SettingsService()
