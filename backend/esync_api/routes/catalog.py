"""
eSync+ API — Catalog Route Handlers
====================================

What:  The CRUD endpoints every catalog table shares, and the routers for
       the plain parameter tables (brands, units, product types,
       currencies, tax rates, suppliers).
How:   `register_crud_routes()` adds six endpoints for one resource to a
       router. Routes stay thin: they read the request, call the resource's
       service and shape the response.

Endpoints per resource (e.g. base path /product-brands):
    GET    /api/product-brands                    paginated list
    GET    /api/product-brands/next-sort-order    {"next": n}
    GET    /api/product-brands/{id}               one row
    POST   /api/product-brands                    create → 201
    PUT    /api/product-brands/{id}               partial update
    DELETE /api/product-brands/{id}               {"success": true, "id": id}

next-sort-order is registered before /{id}; routers that add their own
fixed sub-paths (hierarchy) do so before calling register_crud_routes.
"""

from typing import Optional, Type

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.config import settings
from esync_api.database import get_db_session
from esync_api.schemas.catalog import (
    BrandCreate,
    BrandResponse,
    BrandUpdate,
    CurrencyCreate,
    CurrencyResponse,
    CurrencyUpdate,
    ProductTypeCreate,
    ProductTypeResponse,
    ProductTypeUpdate,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
    TaxRateCreate,
    TaxRateResponse,
    TaxRateUpdate,
    UnitCreate,
    UnitResponse,
    UnitUpdate,
)
from esync_api.schemas.common import (
    DeleteResponse,
    ErrorResponse,
    NextSortOrderResponse,
    PageResponse,
)
from esync_api.services.catalog_service import (
    CatalogService,
    brand_service,
    currency_service,
    product_type_service,
    supplier_service,
    tax_rate_service,
    unit_service,
)

WRITE_ERRORS = {
    400: {"description": "Business rule violated", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def register_crud_routes(
    router: APIRouter,
    base_path: str,
    service: CatalogService,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
) -> None:
    """Add list, next-sort-order, get, create, update and delete for one resource."""
    label = service.resource
    key = base_path.strip("/").replace("-", "_")

    @router.get(
        base_path,
        response_model=PageResponse[response_schema],
        name=f"list_{key}",
        summary=f"List {label} records",
        description=(
            "Rows ordered by sort_order, then name. `search` is a case-insensitive "
            "substring match; `status` filters active (1) or passive (0) rows."
        ),
    )
    async def list_records(
        response: Response,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
        search: Optional[str] = Query(default=None, max_length=200),
        status_filter: Optional[int] = Query(default=None, alias="status", ge=0, le=1),
        db: AsyncSession = Depends(get_db_session),
    ):
        data, total = await service.list_page(db, page=page, limit=limit, search=search, status=status_filter)
        response.headers["X-Total-Count"] = str(total)
        return PageResponse[response_schema](data=data, total=total, page=page, limit=limit)

    @router.get(
        f"{base_path}/next-sort-order",
        response_model=NextSortOrderResponse,
        name=f"next_sort_order_{key}",
        summary=f"Next free sort order for a new {label}",
    )
    async def next_sort_order(db: AsyncSession = Depends(get_db_session)):
        return NextSortOrderResponse(next=await service.next_sort_order(db))

    @router.get(
        f"{base_path}/{{record_id}}",
        response_model=response_schema,
        name=f"get_{key}",
        responses={404: {"description": "Not found", "model": ErrorResponse}},
        summary=f"Get one {label}",
    )
    async def get_record(record_id: int, db: AsyncSession = Depends(get_db_session)):
        return await service.get(db, record_id)

    @router.post(
        base_path,
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{key}",
        responses=WRITE_ERRORS,
        summary=f"Create a {label}",
    )
    async def create_record(payload: create_schema, db: AsyncSession = Depends(get_db_session)):
        return await service.create(db, payload.model_dump(exclude_unset=True))

    @router.put(
        f"{base_path}/{{record_id}}",
        response_model=response_schema,
        name=f"update_{key}",
        responses={**WRITE_ERRORS, 404: {"description": "Not found", "model": ErrorResponse}},
        summary=f"Update a {label}",
        description="Only the fields present in the body are changed.",
    )
    async def update_record(
        record_id: int,
        payload: update_schema,
        db: AsyncSession = Depends(get_db_session),
    ):
        return await service.update(db, record_id, payload.model_dump(exclude_unset=True))

    @router.delete(
        f"{base_path}/{{record_id}}",
        response_model=DeleteResponse,
        name=f"delete_{key}",
        responses={
            404: {"description": "Not found", "model": ErrorResponse},
            409: {"description": "Still referenced by other rows", "model": ErrorResponse},
        },
        summary=f"Delete a {label}",
    )
    async def delete_record(record_id: int, db: AsyncSession = Depends(get_db_session)):
        return DeleteResponse(id=await service.delete(db, record_id))


# ── Parameter Tables ──────────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Parameters"])

register_crud_routes(router, "/product-brands", brand_service, BrandCreate, BrandUpdate, BrandResponse)
register_crud_routes(router, "/product-units", unit_service, UnitCreate, UnitUpdate, UnitResponse)
register_crud_routes(
    router, "/product-types", product_type_service,
    ProductTypeCreate, ProductTypeUpdate, ProductTypeResponse,
)
register_crud_routes(
    router, "/product-currencies", currency_service,
    CurrencyCreate, CurrencyUpdate, CurrencyResponse,
)
register_crud_routes(
    router, "/product-tax-rates", tax_rate_service,
    TaxRateCreate, TaxRateUpdate, TaxRateResponse,
)
register_crud_routes(
    router, "/suppliers", supplier_service,
    SupplierCreate, SupplierUpdate, SupplierResponse,
)
