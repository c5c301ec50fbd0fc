"""
eSync+ API — Category Service
==============================

What:  CRUD for product_categories with the three-level rules, plus the
       hierarchy, path and product-code lookups the category picker uses.
Who:   Category routes and ProductService (composed product codes).

Level Rules (checked on every write):
    - category_id must name an existing *category* (not a group, not a
      subcategory), which caps the depth at three levels
    - a subcategory takes its group_id from its parent
    - group_id must name a group
    - a row can never be its own parent
    - a row that has children cannot change level
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from esync_api.catalog.hierarchy import (
    LEVEL_CATEGORY,
    LEVEL_GROUP,
    LEVEL_SUBCATEGORY,
    HierarchyItem,
    build_hierarchy,
    filter_hierarchy,
    get_category_path,
)
from esync_api.catalog.product_code import CategoryPathItem, build_product_code
from esync_api.exceptions import NotFoundError, ValidationError
from esync_api.models import Product, ProductBrand, ProductCategory
from esync_api.schemas.catalog import CategoryResponse
from esync_api.services.catalog_service import CatalogService, database_errors

logger = logging.getLogger(__name__)


def _level_of(group_id: Optional[int], category_id: Optional[int]) -> str:
    if category_id:
        return LEVEL_SUBCATEGORY
    if group_id:
        return LEVEL_CATEGORY
    return LEVEL_GROUP


class CategoryService(CatalogService):
    model = ProductCategory
    response_schema = CategoryResponse
    resource = "category"
    search_columns = ("name", "code", "slug")
    slug_field = "slug"
    references = (
        (Product, "category_id", "products"),
        (ProductCategory, "category_id", "subcategories"),
        (ProductCategory, "group_id", "categories"),
    )

    async def _prepare(self, db, values, existing):
        values = await super()._prepare(db, values, existing)

        group_id = values["group_id"] if "group_id" in values else (existing.group_id if existing else None)
        category_id = values["category_id"] if "category_id" in values else (existing.category_id if existing else None)
        group_id = group_id or None
        category_id = category_id or None

        own_id = existing.id if existing is not None else None
        if own_id is not None and own_id in (group_id, category_id):
            raise ValidationError(
                message="A category cannot be its own parent",
                field="category_id" if category_id == own_id else "group_id",
            )

        if category_id:
            parent = await self._load(db, category_id)
            if parent is None:
                raise ValidationError(message=f"Category with ID '{category_id}' does not exist", field="category_id")
            if parent.level != LEVEL_CATEGORY:
                raise ValidationError(
                    message="A subcategory's parent must be a category; hierarchies are at most three levels deep",
                    field="category_id",
                    context={"parent_level": parent.level},
                )
            group_id = parent.group_id
        elif group_id:
            group = await self._load(db, group_id)
            if group is None:
                raise ValidationError(message=f"Group with ID '{group_id}' does not exist", field="group_id")
            if group.level != LEVEL_GROUP:
                raise ValidationError(message="group_id must reference a group", field="group_id")

        if existing is not None:
            new_level = _level_of(group_id, category_id)
            if new_level != existing.level and await self._has_children(db, existing.id):
                raise ValidationError(
                    message="Cannot change the level of a category that has children",
                    field="category_id" if category_id else "group_id",
                )

        values["group_id"] = group_id
        values["category_id"] = category_id
        return values

    async def _after_write(self, db, row, data, created):
        # Subcategories follow their parent into a new group
        if not created and row.level == LEVEL_CATEGORY:
            logger.debug("Moving subcategories of category %s to group %s", row.id, row.group_id)
            await db.execute(
                update(ProductCategory)
                .where(ProductCategory.category_id == row.id)
                .values(group_id=row.group_id)
                .execution_options(synchronize_session="fetch")
            )

    async def _load(self, db: AsyncSession, category_id: int) -> Optional[ProductCategory]:
        with database_errors("load category", category_id=category_id):
            return await db.get(ProductCategory, category_id)

    async def _has_children(self, db: AsyncSession, category_id: int) -> bool:
        with database_errors("count child categories", category_id=category_id):
            count = await db.scalar(
                select(func.count()).select_from(ProductCategory).where(
                    or_(ProductCategory.category_id == category_id, ProductCategory.group_id == category_id)
                )
            )
        return bool(count)

    # ── Hierarchy ─────────────────────────────────────────────────────────

    async def all_categories(self, db: AsyncSession) -> List[ProductCategory]:
        with database_errors("load categories"):
            result = await db.execute(select(ProductCategory))
            return list(result.scalars().all())

    async def hierarchy(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        selectable_only: bool = False,
    ) -> List[HierarchyItem]:
        items = build_hierarchy(await self.all_categories(db))
        if search:
            items = filter_hierarchy(items, search)
        if selectable_only:
            items = [item for item in items if item.selectable]
        return items

    async def path(self, db: AsyncSession, category_id: int) -> Tuple[List[CategoryPathItem], str]:
        """
        Picker path of a category and its dotted code ("EV.MU.TA").

        Categories that are not entries of the hierarchy (a category with
        subcategories, an orphan) have an empty path.
        """
        if await self._load(db, category_id) is None:
            raise NotFoundError(resource="category", resource_id=str(category_id))
        path = get_category_path(await self.all_categories(db), category_id)
        return path, build_product_code(path, "", "")

    async def product_code(
        self,
        db: AsyncSession,
        category_id: Optional[int] = None,
        brand_id: Optional[int] = None,
        supplier_code: Optional[str] = None,
    ) -> Tuple[str, str]:
        """(full code, prefix) for the given selection."""
        path: List[CategoryPathItem] = []
        if category_id:
            if await self._load(db, category_id) is None:
                raise ValidationError(message=f"Category with ID '{category_id}' does not exist", field="category_id")
            path = get_category_path(await self.all_categories(db), category_id)

        brand_code = ""
        if brand_id:
            with database_errors("load brand", brand_id=brand_id):
                brand = await db.get(ProductBrand, brand_id)
            if brand is None:
                raise ValidationError(message=f"Brand with ID '{brand_id}' does not exist", field="brand_id")
            brand_code = brand.code or ""

        return (
            build_product_code(path, brand_code, supplier_code or ""),
            build_product_code(path, brand_code, ""),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
category_service = CategoryService()
