"""
eSync+ API — Sidebar Configuration Service
===========================================

What:  Reads and writes the console sidebar: its header (title, logo) and
       the ordered list of menu entries and separators.
How:   Both parts are JSON documents in app_settings, category "sidebar",
       keys "header" and "menus". A stored document that no longer parses
       is logged and replaced by the defaults on read.

Menu Rules (on save):
    - every id is non-blank and unique within the list
    - a module_id must name a registered module; the stored link becomes
      that module's path
    - list order is kept as given
"""

import json
import logging
from typing import List

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.exceptions import ValidationError
from esync_api.navigation import DEFAULT_SIDEBAR_TITLE, get_module_by_id
from esync_api.schemas.settings import SidebarHeader, SidebarMenuItem, SidebarResponse
from esync_api.services.settings_service import settings_service

logger = logging.getLogger(__name__)

SIDEBAR_CATEGORY = "sidebar"
MENUS_KEY = "menus"
HEADER_KEY = "header"


class SidebarService:

    async def get_sidebar(self, db: AsyncSession) -> SidebarResponse:
        return SidebarResponse(
            header=await self.get_header(db),
            menus=await self.get_menus(db),
        )

    async def get_menus(self, db: AsyncSession) -> List[SidebarMenuItem]:
        raw = await settings_service.get_value(db, SIDEBAR_CATEGORY, MENUS_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("menus is not a list")
            return [SidebarMenuItem.model_validate(item) for item in items]
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Stored sidebar menus are unreadable, using defaults: %s", str(e))
            return []

    async def save_menus(self, db: AsyncSession, items: List[SidebarMenuItem]) -> List[SidebarMenuItem]:
        cleaned: List[SidebarMenuItem] = []
        seen = set()
        for index, item in enumerate(items):
            item_id = item.id.strip()
            if not item_id:
                raise ValidationError(message="Menu item id is required", field=f"menus[{index}].id")
            if item_id in seen:
                raise ValidationError(
                    message=f"Duplicate menu item id '{item_id}'",
                    field=f"menus[{index}].id",
                )
            seen.add(item_id)

            update = {"id": item_id, "label": item.label.strip()}
            if item.module_id:
                module = get_module_by_id(item.module_id)
                if module is None:
                    raise ValidationError(
                        message=f"Unknown module '{item.module_id}'",
                        field=f"menus[{index}].module_id",
                    )
                update["link"] = module.path
            else:
                update["link"] = item.link.strip()
            cleaned.append(item.model_copy(update=update))

        payload = json.dumps([item.model_dump() for item in cleaned], ensure_ascii=False)
        await settings_service.put_category(db, SIDEBAR_CATEGORY, {MENUS_KEY: payload})
        logger.info("Sidebar menus saved (%d entries)", len(cleaned))
        return cleaned

    async def get_header(self, db: AsyncSession) -> SidebarHeader:
        raw = await settings_service.get_value(db, SIDEBAR_CATEGORY, HEADER_KEY)
        header = SidebarHeader(title=DEFAULT_SIDEBAR_TITLE)
        if raw:
            try:
                header = SidebarHeader.model_validate_json(raw)
            except PydanticValidationError as e:
                logger.warning("Stored sidebar header is unreadable, using defaults: %s", str(e))
        if not header.title.strip():
            header = header.model_copy(update={"title": DEFAULT_SIDEBAR_TITLE})
        return header

    async def save_header(self, db: AsyncSession, header: SidebarHeader) -> SidebarHeader:
        cleaned = SidebarHeader(
            title=header.title.strip() or DEFAULT_SIDEBAR_TITLE,
            logo_path=(header.logo_path or "").strip() or None,
        )
        await settings_service.put_category(db, SIDEBAR_CATEGORY, {HEADER_KEY: cleaned.model_dump_json()})
        return cleaned


sidebar_service = SidebarService()
