"""
eSync+ API — Storage Folder Registry Service
=============================================

What:  storage_folders rows: the prefixes the folder picker offers.
How:   Registering a folder normalises its path ("images/brands/") and
       creates the prefix in the bucket; deleting a row leaves the bucket
       untouched.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.exceptions import ConflictError, NotFoundError, ValidationError
from esync_api.models import StorageFolder
from esync_api.services.catalog_service import database_errors
from esync_api.services.storage_service import StorageService, normalize_prefix

logger = logging.getLogger(__name__)


class FolderService:

    async def list_folders(self, db: AsyncSession) -> List[StorageFolder]:
        with database_errors("list storage folders"):
            result = await db.execute(
                select(StorageFolder).order_by(StorageFolder.sort_order, StorageFolder.name, StorageFolder.id)
            )
            return list(result.scalars().all())

    async def create_folder(self, db: AsyncSession, storage: StorageService, data: Dict[str, Any]) -> StorageFolder:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError(message="Name is required", field="name")
        path = normalize_prefix(data.get("path"))
        if not path:
            raise ValidationError(message="Folder path is required", field="path")

        with database_errors("check storage folder path"):
            duplicate = await db.scalar(select(StorageFolder.id).where(StorageFolder.path == path))
        if duplicate is not None:
            raise ConflictError(message=f"Folder '{path}' is already registered", context={"path": path})

        await storage.ensure_prefix(path)
        with database_errors("create storage folder"):
            folder = StorageFolder(
                name=name,
                path=path,
                type=(data.get("type") or "folder").strip() or "folder",
                sort_order=data.get("sort_order") or 0,
            )
            db.add(folder)
            await db.flush()
        logger.info("Storage folder registered: %s (%s)", folder.path, folder.id)
        return folder

    async def delete_folder(self, db: AsyncSession, folder_id: int) -> int:
        with database_errors("delete storage folder", folder_id=folder_id):
            folder = await db.get(StorageFolder, folder_id)
            if folder is None:
                raise NotFoundError(resource="storage folder", resource_id=str(folder_id))
            await db.delete(folder)
            await db.flush()
        logger.info("Storage folder removed: %s", folder_id)
        return folder_id


folder_service = FolderService()
