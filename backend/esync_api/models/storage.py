"""
eSync+ API — Storage Folder and App Setting Models
===================================================

What:  Registry of bucket prefixes offered by the folder picker, and the
       key/value settings table (MySQL source connection, sidebar layout).
"""

from typing import Optional

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from esync_api.database import Base
from esync_api.models.base import TimestampMixin


class StorageFolder(TimestampMixin, Base):
    """
    A named prefix inside the bucket.

    `path` is a key prefix ending with "/" and without a leading "/"
    (e.g. "images/brands/").
    """

    __tablename__ = "storage_folders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="folder")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    def __repr__(self) -> str:
        return f"<StorageFolder(id={self.id}, path='{self.path}')>"


class AppSetting(TimestampMixin, Base):
    """One setting value, addressed by (category, key). Values are text."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("category", "key", name="uq_app_settings_category_key"),
    )
