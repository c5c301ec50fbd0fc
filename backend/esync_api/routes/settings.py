"""
eSync+ API — App Settings and Sidebar Route Handlers
=====================================================

Endpoints:
    GET /api/app-settings?category=   flat {key: value} map
    PUT /api/app-settings             upsert one category
    GET /api/app-modules              navigable application modules
    GET /api/sidebar                  header + menus
    PUT /api/sidebar/menus            replace the menu list
    PUT /api/sidebar/header           replace the header
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.database import get_db_session
from esync_api.navigation import APP_MODULES
from esync_api.schemas.common import ErrorResponse
from esync_api.schemas.settings import (
    AppModuleResponse,
    AppSettingsUpdate,
    AppSettingsUpdateResponse,
    SidebarHeader,
    SidebarMenuItem,
    SidebarResponse,
)
from esync_api.services.settings_service import settings_service
from esync_api.services.sidebar_service import sidebar_service

router = APIRouter(prefix="/api", tags=["Settings"])


@router.get(
    "/app-settings",
    response_model=Dict[str, Optional[str]],
    summary="Settings of one category",
    description="Values are returned as stored text; unknown categories give {}.",
)
async def get_app_settings(
    category: str = Query(..., min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Optional[str]]:
    return await settings_service.get_category(db, category)


@router.put(
    "/app-settings",
    response_model=AppSettingsUpdateResponse,
    responses={400: {"description": "Blank category", "model": ErrorResponse}},
    summary="Upsert settings of one category",
)
async def put_app_settings(
    payload: AppSettingsUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> AppSettingsUpdateResponse:
    count = await settings_service.put_category(db, payload.category, payload.settings)
    return AppSettingsUpdateResponse(category=payload.category.strip(), count=count)


@router.get(
    "/app-modules",
    response_model=List[AppModuleResponse],
    summary="Navigable application modules",
)
async def list_app_modules() -> List[AppModuleResponse]:
    return [AppModuleResponse(**module._asdict()) for module in APP_MODULES]


@router.get("/sidebar", response_model=SidebarResponse, summary="Sidebar configuration")
async def get_sidebar(db: AsyncSession = Depends(get_db_session)) -> SidebarResponse:
    return await sidebar_service.get_sidebar(db)


@router.put(
    "/sidebar/menus",
    response_model=List[SidebarMenuItem],
    responses={400: {"description": "Duplicate id or unknown module", "model": ErrorResponse}},
    summary="Replace the sidebar menu list",
    description="List order is display order. Items with a module_id take the module's path as link.",
)
async def put_sidebar_menus(
    payload: List[SidebarMenuItem],
    db: AsyncSession = Depends(get_db_session),
) -> List[SidebarMenuItem]:
    return await sidebar_service.save_menus(db, payload)


@router.put("/sidebar/header", response_model=SidebarHeader, summary="Replace the sidebar header")
async def put_sidebar_header(
    payload: SidebarHeader,
    db: AsyncSession = Depends(get_db_session),
) -> SidebarHeader:
    return await sidebar_service.save_header(db, payload)
