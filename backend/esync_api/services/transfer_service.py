"""
eSync+ API — Data Transfer Service
===================================

What:  Writes one batch of source rows into an application table.
How:   The web client reads rows from the MySQL source page by page and
       posts them here with a {source column: target column} mapping.
       Each row is projected through the mapping, then upserted by its
       mapped `id`: an existing id is updated, anything else is inserted.

Mapping Rules:
    - the target table must be an application table
    - created_at / updated_at on either side are dropped (the target keeps
      its own timestamps)
    - entries with a blank source or target are dropped
    - every remaining target must be a column of the table
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import Table, insert, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.config import settings
from esync_api.exceptions import ValidationError
from esync_api.services.catalog_service import database_errors
from esync_api.services.database_info_service import application_tables

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMNS = {"created_at", "updated_at"}


def clean_mapping(table: Table, mapping: Dict[str, str]) -> Dict[str, str]:
    """Apply the mapping rules; ValidationError for unknown target columns."""
    cleaned: Dict[str, str] = {}
    for source, target in mapping.items():
        source = (source or "").strip()
        target = (target or "").strip()
        if not source or not target:
            continue
        if source.lower() in TIMESTAMP_COLUMNS or target.lower() in TIMESTAMP_COLUMNS:
            continue
        if target not in table.c:
            raise ValidationError(
                message=f"'{target}' is not a column of {table.name}",
                field="columnMapping",
                context={"column": target},
            )
        cleaned[source] = target
    return cleaned


def _required_columns(table: Table) -> List[str]:
    """Columns an INSERT must supply: NOT NULL without any default."""
    return [
        column.name
        for column in table.columns
        if not column.nullable
        and not column.primary_key
        and column.default is None
        and column.server_default is None
    ]


class TransferService:

    async def execute_batch(
        self,
        db: AsyncSession,
        target_table: str,
        column_mapping: Dict[str, str],
        rows: List[Dict[str, Any]],
    ) -> Dict[str, int]:
        """
        Upsert `rows` into `target_table`.

        Returns:
            {"inserted": n, "updated": n, "total": len(rows)}
        """
        table = application_tables().get((target_table or "").strip())
        if table is None:
            raise ValidationError(message=f"Unknown target table '{target_table}'", field="targetTable")
        if not rows:
            raise ValidationError(message="No rows to transfer", field="rows")
        if len(rows) > settings.transfer_max_batch:
            raise ValidationError(
                message=f"A batch may contain at most {settings.transfer_max_batch} rows",
                field="rows",
                context={"received": len(rows), "max": settings.transfer_max_batch},
            )

        mapping = clean_mapping(table, column_mapping)
        if not mapping:
            raise ValidationError(message="Column mapping is empty", field="columnMapping")

        # NULL never overwrites a NOT NULL column; its default or current value stays
        projected = [
            {
                target: row.get(source)
                for source, target in mapping.items()
                if row.get(source) is not None or table.c[target].nullable
            }
            for row in rows
        ]

        required = _required_columns(table)
        id_column = table.c.get("id")
        ids = [values["id"] for values in projected if values.get("id") is not None]

        inserted = updated = 0
        with database_errors(f"transfer rows into {table.name}", table=table.name):
            existing_ids = set()
            if ids and id_column is not None:
                result = await db.execute(select(id_column).where(id_column.in_(ids)))
                existing_ids = set(result.scalars().all())

            for index, values in enumerate(projected):
                row_id = values.get("id")
                if row_id is not None and row_id in existing_ids:
                    changes = {k: v for k, v in values.items() if k != "id"}
                    if changes:
                        await db.execute(update(table).where(id_column == row_id).values(**changes))
                    updated += 1
                    continue

                missing = [c for c in required if values.get(c) is None]
                if missing:
                    raise ValidationError(
                        message=f"Row {index + 1} has no value for {', '.join(missing)}",
                        field="rows",
                        context={"row": index + 1, "missing": missing},
                    )
                await db.execute(insert(table).values(**values))
                inserted += 1
                if row_id is not None:
                    existing_ids.add(row_id)

            if inserted and ids and db.get_bind().dialect.name == "postgresql":
                # Explicit ids do not advance the serial sequence
                await db.execute(
                    text(
                        f"SELECT setval(pg_get_serial_sequence('{table.name}', 'id'), "
                        f"(SELECT COALESCE(MAX(id), 1) FROM {table.name}))"
                    )
                )

        logger.info(
            "Transfer into %s: %d inserted, %d updated (%d rows)",
            table.name, inserted, updated, len(rows),
        )
        return {"inserted": inserted, "updated": updated, "total": len(rows)}


transfer_service = TransferService()
