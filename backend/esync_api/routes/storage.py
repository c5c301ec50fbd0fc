"""
eSync+ API — Storage Route Handlers
====================================

What:  The object bucket (upload, delete, prefix listing and creation, object
       download) and the storage folder registry the folder picker reads.
How:   Bucket operations go through StorageService, resolved with
       `Depends(get_storage_service)` so tests can point it at a temp dir.

Endpoints:
    POST   /storage/upload            multipart file (+ folder) → 201
    DELETE /storage/delete?key=       remove one object
    GET    /storage/prefixes?prefix=  immediate child prefixes
    PUT    /storage/folder            create a prefix → 201
    GET    /storage/object/{key}      download an object
    GET    /storage/folders           registry rows
    POST   /storage/folders           register a folder → 201
    DELETE /storage/folders/{id}      unregister a folder
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.database import get_db_session
from esync_api.schemas.common import DeleteResponse, ErrorResponse
from esync_api.schemas.storage import (
    CreatePrefixRequest,
    CreatePrefixResponse,
    DeleteObjectResponse,
    PrefixListResponse,
    StorageFolderCreate,
    StorageFolderResponse,
    UploadResponse,
)
from esync_api.services.folder_service import folder_service
from esync_api.services.storage_service import (
    DEFAULT_UPLOAD_FOLDER,
    StorageService,
    get_storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadResponse,
    responses={
        400: {"description": "Invalid file type or size", "model": ErrorResponse},
        500: {"description": "File could not be stored", "model": ErrorResponse},
    },
    summary="Upload a file into the bucket",
    description=(
        "Accepts png, jpg, jpeg, webp, gif, svg, ico and pdf files up to the "
        "configured size. The file is stored under `folder` (default images/) "
        "with a unique suffix; the returned `path` is the key to save."
    ),
)
async def upload_file(
    file: UploadFile = File(..., description="File to store"),
    folder: Optional[str] = Form(default=DEFAULT_UPLOAD_FOLDER, description="Target prefix"),
    storage: StorageService = Depends(get_storage_service),
) -> UploadResponse:
    content = await file.read()
    logger.info(
        "Received upload: filename=%s, size=%d bytes, folder=%s",
        file.filename or "unknown",
        len(content),
        folder,
    )
    try:
        stored = await storage.upload(
            filename=file.filename or "",
            content=content,
            folder=folder,
            content_length=file.size,
        )
    finally:
        await file.close()
    return UploadResponse(**stored)


@router.delete(
    "/delete",
    response_model=DeleteObjectResponse,
    responses={
        400: {"description": "Invalid key", "model": ErrorResponse},
        404: {"description": "Object not found", "model": ErrorResponse},
    },
    summary="Delete an object",
)
async def delete_object(
    key: str = Query(..., min_length=1, description="Object key"),
    storage: StorageService = Depends(get_storage_service),
) -> DeleteObjectResponse:
    await storage.delete_object(key)
    return DeleteObjectResponse(key=key)


@router.get(
    "/prefixes",
    response_model=PrefixListResponse,
    summary="List folders under a prefix",
)
async def list_prefixes(
    prefix: Optional[str] = Query(default="", description='Parent prefix, e.g. "images/"'),
    storage: StorageService = Depends(get_storage_service),
) -> PrefixListResponse:
    return PrefixListResponse(prefixes=await storage.list_prefixes(prefix))


@router.put(
    "/folder",
    status_code=status.HTTP_201_CREATED,
    response_model=CreatePrefixResponse,
    responses={
        400: {"description": "Invalid folder name", "model": ErrorResponse},
        409: {"description": "Folder already exists", "model": ErrorResponse},
    },
    summary="Create a folder (prefix)",
)
async def create_prefix(
    payload: CreatePrefixRequest,
    storage: StorageService = Depends(get_storage_service),
) -> CreatePrefixResponse:
    return CreatePrefixResponse(path=await storage.create_prefix(payload.path, payload.name))


@router.get(
    "/object/{key:path}",
    responses={
        200: {"description": "Object content"},
        404: {"description": "Object not found", "model": ErrorResponse},
    },
    summary="Download an object",
)
async def get_object(
    key: str,
    storage: StorageService = Depends(get_storage_service),
) -> FileResponse:
    path = await storage.object_path(key)
    # Media type is guessed from the file name
    return FileResponse(path=str(path), headers={"Cache-Control": "public, max-age=86400"})


# ── Folder Registry ───────────────────────────────────────────────────────

@router.get(
    "/folders",
    response_model=List[StorageFolderResponse],
    summary="Registered storage folders",
)
async def list_folders(db: AsyncSession = Depends(get_db_session)) -> List[StorageFolderResponse]:
    folders = await folder_service.list_folders(db)
    return [StorageFolderResponse.model_validate(f) for f in folders]


@router.post(
    "/folders",
    status_code=status.HTTP_201_CREATED,
    response_model=StorageFolderResponse,
    responses={
        400: {"description": "Missing name or path", "model": ErrorResponse},
        409: {"description": "Path already registered", "model": ErrorResponse},
    },
    summary="Register a storage folder",
    description="The path is normalised (no leading '/', one trailing '/') and created in the bucket.",
)
async def create_folder(
    payload: StorageFolderCreate,
    db: AsyncSession = Depends(get_db_session),
    storage: StorageService = Depends(get_storage_service),
) -> StorageFolderResponse:
    folder = await folder_service.create_folder(db, storage, payload.model_dump(exclude_unset=True))
    return StorageFolderResponse.model_validate(folder)


@router.delete(
    "/folders/{folder_id}",
    response_model=DeleteResponse,
    responses={404: {"description": "Folder not found", "model": ErrorResponse}},
    summary="Unregister a storage folder",
)
async def delete_folder(folder_id: int, db: AsyncSession = Depends(get_db_session)) -> DeleteResponse:
    return DeleteResponse(id=await folder_service.delete_folder(db, folder_id))
