"""
eSync+ API — Database Info Service
===================================

What:  Table statistics for the settings page and the column lists the
       data-transfer mapper offers as targets.
How:   Table and column names come from the ORM metadata, so only
       application tables are ever exposed. Row counts are live; sizes are
       reported where the engine can tell (PostgreSQL), "-" elsewhere.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import Table, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.database import Base
from esync_api.exceptions import NotFoundError
from esync_api.services.catalog_service import database_errors

logger = logging.getLogger(__name__)

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def human_size(num_bytes: Optional[int]) -> str:
    """
    Example:
        >>> human_size(0), human_size(1536), human_size(None)
        ('0 B', '1.5 KB', '-')
    """
    if num_bytes is None:
        return "-"
    size = float(num_bytes)
    for unit in _SIZE_UNITS:
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return "-"


def application_tables() -> Dict[str, Table]:
    # Models register themselves on Base.metadata when imported
    import esync_api.models  # noqa: F401

    return dict(sorted(Base.metadata.tables.items()))


def get_table(name: str) -> Table:
    table = application_tables().get(name)
    if table is None:
        raise NotFoundError(resource="table", resource_id=name)
    return table


class DatabaseInfoService:

    async def table_info(self, db: AsyncSession) -> List[Dict[str, object]]:
        """[{name, rowCount, size}] for every application table."""
        dialect = db.get_bind().dialect.name
        info = []
        with database_errors("read table statistics"):
            for name, table in application_tables().items():
                row_count = await db.scalar(select(func.count()).select_from(table))
                size = await self._table_size(db, dialect, name)
                info.append({"name": name, "rowCount": row_count or 0, "size": human_size(size)})
        return info

    async def _table_size(self, db: AsyncSession, dialect: str, name: str) -> Optional[int]:
        if dialect != "postgresql":
            return None
        try:
            async with db.begin_nested():
                return await db.scalar(
                    text("SELECT pg_total_relation_size(CAST(:name AS regclass))"),
                    {"name": name},
                )
        except Exception as e:
            logger.warning("Could not read size of table %s: %s", name, str(e))
            return None

    def list_tables(self) -> List[str]:
        return list(application_tables())

    def list_columns(self, name: str) -> List[Dict[str, str]]:
        table = get_table(name)
        return [{"name": column.name, "type": str(column.type)} for column in table.columns]


database_info_service = DatabaseInfoService()
