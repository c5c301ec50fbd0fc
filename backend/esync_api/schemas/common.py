"""
eSync+ API — Shared Request/Response Schemas
=============================================

What:  Pydantic models reused by every router: the error envelope, the
       health report, and the list/delete wrappers of the CRUD endpoints.
Who:   Route handlers (as response models) and the global exception handlers.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "conflict",
            "message": "Cannot delete brand: it is used by 3 products",
            "details": {"references": {"products": 3}},
            "request_id": "5f0c2a1b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Object storage: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")


class HelloResponse(BaseModel):
    message: str
    timestamp: datetime


class RecordResponse(BaseModel):
    """Columns every catalog table carries."""
    id: int
    sort_order: int = 0
    status: int = Field(default=1, description="1 = active, 0 = passive")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PageResponse(BaseModel, Generic[T]):
    """
    One page of a list endpoint.

    `total` counts every row matching the filters, not just this page.
    """
    data: List[T]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)


class NextSortOrderResponse(BaseModel):
    next: int = Field(description="max(sort_order) + 1, or 1 for an empty table")


class DeleteResponse(BaseModel):
    success: bool = True
    id: int
