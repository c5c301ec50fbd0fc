"""
eSync+ API — Database Info, MySQL Source and Transfer Route Handlers
=====================================================================

What:  Backs the "Veri Aktarımı" (data transfer) settings page: statistics
       and columns of the application tables, browsing of an external MySQL
       database, and batch import of its rows into an application table.
How:   The client reads source rows page by page and posts them to
       /api/transfer/execute-batch with a source → target column mapping.

Errors:
    400  missing MySQL connection settings, bad mapping or batch
    404  unknown application or source table
    502  MySQL source unreachable or failing
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.database import get_db_session
from esync_api.schemas.common import ErrorResponse
from esync_api.schemas.transfer import (
    ColumnInfo,
    ColumnListResponse,
    SourceConnection,
    SourceTestResponse,
    TableInfo,
    TableListResponse,
    TableRowsResponse,
    TransferBatchRequest,
    TransferBatchResponse,
)
from esync_api.services.database_info_service import database_info_service
from esync_api.services.source_db_service import source_db_service
from esync_api.services.transfer_service import transfer_service

SOURCE_ERRORS = {
    400: {"description": "Connection settings incomplete", "model": ErrorResponse},
    502: {"description": "MySQL source unreachable", "model": ErrorResponse},
}

router = APIRouter(tags=["Database"])


# ── Application Tables ────────────────────────────────────────────────────

@router.get(
    "/tables/info",
    response_model=List[TableInfo],
    summary="Row count and size of every application table",
)
async def get_tables_info(db: AsyncSession = Depends(get_db_session)) -> List[TableInfo]:
    return [TableInfo(**row) for row in await database_info_service.table_info(db)]


@router.get("/tables", response_model=List[str], summary="Application table names as a plain array")
async def list_tables() -> List[str]:
    return database_info_service.list_tables()


@router.get("/api/d1/tables", response_model=TableListResponse, summary="Application table names")
@router.get("/api/db/tables", response_model=TableListResponse, include_in_schema=False)
async def list_db_tables() -> TableListResponse:
    return TableListResponse(tables=database_info_service.list_tables())


@router.get(
    "/api/d1/columns/{table}",
    response_model=ColumnListResponse,
    responses={404: {"description": "Unknown table", "model": ErrorResponse}},
    summary="Columns of an application table",
)
@router.get("/api/db/columns/{table}", response_model=ColumnListResponse, include_in_schema=False)
async def list_db_columns(table: str) -> ColumnListResponse:
    return ColumnListResponse(
        columns=[ColumnInfo(**column) for column in database_info_service.list_columns(table)]
    )


# ── MySQL Source ──────────────────────────────────────────────────────────

@router.post(
    "/api/mysql/test",
    response_model=SourceTestResponse,
    responses=SOURCE_ERRORS,
    summary="Test the MySQL source connection",
    description="Fields in the body override the stored connection settings for this test only.",
)
async def test_mysql_connection(
    overrides: Optional[SourceConnection] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> SourceTestResponse:
    version = await source_db_service.test_connection(db, overrides)
    return SourceTestResponse(success=True, version=version)


@router.get(
    "/api/mysql/tables",
    response_model=TableListResponse,
    responses=SOURCE_ERRORS,
    summary="Tables of the MySQL source",
)
async def list_mysql_tables(db: AsyncSession = Depends(get_db_session)) -> TableListResponse:
    return TableListResponse(tables=await source_db_service.list_tables(db))


@router.get(
    "/api/mysql/columns/{table}",
    response_model=ColumnListResponse,
    responses={**SOURCE_ERRORS, 404: {"description": "Unknown source table", "model": ErrorResponse}},
    summary="Columns of a MySQL source table",
)
async def list_mysql_columns(table: str, db: AsyncSession = Depends(get_db_session)) -> ColumnListResponse:
    columns = await source_db_service.list_columns(db, table)
    return ColumnListResponse(columns=[ColumnInfo(**column) for column in columns])


@router.get(
    "/api/mysql/table-data/{table}",
    response_model=TableRowsResponse,
    responses={**SOURCE_ERRORS, 404: {"description": "Unknown source table", "model": ErrorResponse}},
    summary="Rows of a MySQL source table",
)
async def get_mysql_table_data(
    table: str,
    limit: int = Query(default=2000, ge=1, le=2000),
    db: AsyncSession = Depends(get_db_session),
) -> TableRowsResponse:
    return TableRowsResponse(rows=await source_db_service.table_data(db, table, limit))


# ── Transfer ──────────────────────────────────────────────────────────────

@router.post(
    "/api/transfer/execute-batch",
    response_model=TransferBatchResponse,
    responses={400: {"description": "Invalid table, mapping or batch", "model": ErrorResponse}},
    summary="Import one batch of rows into an application table",
    description=(
        "Each row is projected through `columnMapping` (source → target). "
        "Rows whose mapped id exists are updated, the rest inserted. "
        "created_at / updated_at mappings are ignored."
    ),
)
async def execute_transfer_batch(
    payload: TransferBatchRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TransferBatchResponse:
    result = await transfer_service.execute_batch(
        db,
        target_table=payload.target_table,
        column_mapping=payload.column_mapping,
        rows=payload.rows,
    )
    return TransferBatchResponse(**result)
