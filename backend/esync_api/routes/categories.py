"""
eSync+ API — Category Route Handlers
=====================================

What:  CRUD for product categories plus the picker endpoints:
         GET /api/product-categories/hierarchy   flattened, filterable list
         GET /api/product-categories/{id}/path   path and dotted code
         GET /api/product-code                   code preview for a product form
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.database import get_db_session
from esync_api.routes.catalog import register_crud_routes
from esync_api.schemas.catalog import (
    CategoryCreate,
    CategoryPathElement,
    CategoryPathResponse,
    CategoryResponse,
    CategoryUpdate,
    HierarchyItemResponse,
    HierarchyResponse,
    ProductCodeResponse,
)
from esync_api.schemas.common import ErrorResponse
from esync_api.services.category_service import category_service

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get(
    "/product-categories/hierarchy",
    response_model=HierarchyResponse,
    summary="Category hierarchy for pickers",
    description=(
        "Groups, categories and subcategories flattened into display order. "
        "Group headings are not selectable; a category is selectable only "
        "when it has no subcategories."
    ),
)
async def get_hierarchy(
    search: Optional[str] = Query(default=None, max_length=200),
    selectable_only: bool = Query(default=False),
    db: AsyncSession = Depends(get_db_session),
) -> HierarchyResponse:
    items = await category_service.hierarchy(db, search=search, selectable_only=selectable_only)
    return HierarchyResponse(data=[HierarchyItemResponse(**item.to_dict()) for item in items])


register_crud_routes(
    router, "/product-categories", category_service,
    CategoryCreate, CategoryUpdate, CategoryResponse,
)


@router.get(
    "/product-categories/{category_id}/path",
    response_model=CategoryPathResponse,
    responses={404: {"description": "Category not found", "model": ErrorResponse}},
    summary="Picker path of a category",
)
async def get_category_path(
    category_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> CategoryPathResponse:
    path, code = await category_service.path(db, category_id)
    return CategoryPathResponse(
        path=[CategoryPathElement(name=p.name, code=p.code) for p in path],
        code=code,
    )


@router.get(
    "/product-code",
    response_model=ProductCodeResponse,
    responses={400: {"description": "Unknown category or brand", "model": ErrorResponse}},
    summary="Compose a product code",
    description="group.category.subcategory.brand.supplier, blank segments skipped.",
)
async def get_product_code(
    category_id: Optional[int] = Query(default=None, ge=0),
    brand_id: Optional[int] = Query(default=None, ge=0),
    supplier_code: Optional[str] = Query(default=None, max_length=100),
    db: AsyncSession = Depends(get_db_session),
) -> ProductCodeResponse:
    code, prefix = await category_service.product_code(
        db, category_id=category_id, brand_id=brand_id, supplier_code=supplier_code,
    )
    return ProductCodeResponse(code=code, prefix=prefix)
