"""
eSync+ API — Storage Schemas
=============================

What:  Models for the object bucket endpoints and the folder registry.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """
    Returned by POST /storage/upload with HTTP 201.

    `path` is the object key to store in catalog rows (e.g. product images);
    `url` is where the browser fetches it.
    """
    path: str = Field(description="Object key, e.g. images/brands/logo-1a2b3c4d.png")
    url: str = Field(description="Public URL of the object")
    size: int = Field(description="Size in bytes")
    content_type: str = Field(description="Detected MIME type")


class DeleteObjectResponse(BaseModel):
    success: bool = True
    key: str


class PrefixListResponse(BaseModel):
    prefixes: List[str] = Field(description='Immediate child prefixes, e.g. ["images/", "docs/"]')


class CreatePrefixRequest(BaseModel):
    path: str = Field(default="", description="Parent prefix; empty for the bucket root")
    name: str = Field(min_length=1, max_length=255, description="New folder name")


class CreatePrefixResponse(BaseModel):
    path: str


class StorageFolderCreate(BaseModel):
    name: str = Field(max_length=255)
    path: str = Field(max_length=500)
    type: Optional[str] = Field(default=None, max_length=50)
    sort_order: Optional[int] = Field(default=None, ge=0)


class StorageFolderResponse(BaseModel):
    id: int
    name: str
    path: str
    type: str
    sort_order: int = 0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
