"""
eSync+ API — Database Info, Source and Transfer Schemas
========================================================

What:  Models for table statistics, the external MySQL source and batch
       imports into application tables.

The transfer and table-info bodies keep the camelCase keys the web
client already sends and reads (targetTable, columnMapping, rowCount).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TableInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    row_count: int = Field(alias="rowCount")
    size: str = Field(description='Human readable size, "-" when unknown')


class TableListResponse(BaseModel):
    tables: List[str]


class ColumnInfo(BaseModel):
    name: str
    type: str


class ColumnListResponse(BaseModel):
    columns: List[ColumnInfo]


class SourceConnection(BaseModel):
    """MySQL connection fields. Omitted fields fall back to the stored settings."""
    host: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None


class SourceTestResponse(BaseModel):
    success: bool
    version: Optional[str] = None


class TableRowsResponse(BaseModel):
    rows: List[Dict[str, Any]]


class TransferBatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_table: str = Field(alias="targetTable")
    column_mapping: Dict[str, str] = Field(alias="columnMapping", description="{source column: target column}")
    rows: List[Dict[str, Any]]


class TransferBatchResponse(BaseModel):
    inserted: int
    updated: int
    total: int
