"""
eSync+ API — Product Route Handlers
====================================

What:  CRUD for products and POST /api/products/{id}/copy.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.database import get_db_session
from esync_api.routes.catalog import register_crud_routes
from esync_api.schemas.catalog import ProductCreate, ProductResponse, ProductUpdate
from esync_api.schemas.common import ErrorResponse
from esync_api.services.product_service import product_service

router = APIRouter(prefix="/api", tags=["Products"])

register_crud_routes(
    router, "/products", product_service,
    ProductCreate, ProductUpdate, ProductResponse,
)


@router.post(
    "/products/{product_id}/copy",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Duplicate a product",
    description='Copies every field and the package contents; the copy is named "<name> (kopya)" and has no SKU.',
)
async def copy_product(product_id: int, db: AsyncSession = Depends(get_db_session)) -> ProductResponse:
    return await product_service.copy(db, product_id)
