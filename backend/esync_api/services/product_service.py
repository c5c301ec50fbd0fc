"""
eSync+ API — Product Service
=============================

What:  CRUD for products, including package contents, image lists, the
       composed product code and the copy action.
Who:   Product routes.

Packages:
    A product with is_package=true lists its contents in
    product_package_items. The contents are replaced as a whole whenever
    `package_items` is sent; duplicates are merged by summing quantities and
    a package can never contain itself. Turning is_package off removes the
    contents.
"""

import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from esync_api.catalog.hierarchy import build_hierarchy
from esync_api.catalog.product_code import build_product_code
from esync_api.exceptions import ValidationError
from esync_api.models import (
    Product,
    ProductBrand,
    ProductCategory,
    ProductCurrency,
    ProductPackageItem,
    ProductType,
    ProductUnit,
)
from esync_api.schemas.catalog import ProductResponse
from esync_api.services.catalog_service import CatalogService, currency_service, database_errors
from esync_api.services.category_service import category_service

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (kopya)"

# Columns not carried over by copy()
_COPY_EXCLUDED = {"id", "created_at", "updated_at", "name", "sku"}


def merge_package_items(items: Iterable[Dict[str, Any]]) -> Dict[int, float]:
    """
    {item_product_id: total quantity}, in first-seen order.

    Example:
        >>> merge_package_items([{"item_product_id": 3, "quantity": 1},
        ...                      {"item_product_id": 5, "quantity": 2},
        ...                      {"item_product_id": 3, "quantity": 4}])
        {3: 5, 5: 2}
    """
    merged: Dict[int, float] = {}
    for item in items:
        product_id = item["item_product_id"]
        merged[product_id] = merged.get(product_id, 0) + item.get("quantity", 1)
    return merged


def clean_images(images: Iterable[str]) -> List[str]:
    """Trimmed, non-blank storage keys without duplicates, order kept."""
    seen: List[str] = []
    for key in images:
        key = (key or "").strip()
        if key and key not in seen:
            seen.append(key)
    return seen


class ProductService(CatalogService):
    model = Product
    response_schema = ProductResponse
    resource = "product"
    search_columns = ("name", "sku", "barcode", "supplier_code")
    code_field = None
    foreign_keys = {
        "brand_id": (ProductBrand, "Brand"),
        "category_id": (ProductCategory, "Category"),
        "type_id": (ProductType, "Product type"),
        "unit_id": (ProductUnit, "Unit"),
        "currency_id": (ProductCurrency, "Currency"),
    }
    references = ((ProductPackageItem, "item_product_id", "packages"),)

    def _base_query(self):
        return select(Product).options(
            selectinload(Product.brand),
            selectinload(Product.category),
            selectinload(Product.type),
            selectinload(Product.unit),
            selectinload(Product.currency),
            selectinload(Product.package_items).selectinload(ProductPackageItem.item),
        )

    # ── Serialization ─────────────────────────────────────────────────────

    async def _serialize_many(self, db: AsyncSession, rows: List[Product]) -> List[ProductResponse]:
        if not rows:
            return []
        # One hierarchy build serves every row on the page
        paths = {
            item.id: item.path
            for item in build_hierarchy(await category_service.all_categories(db))
        }
        return [self._to_response(row, paths) for row in rows]

    def _to_response(self, row: Product, paths: Dict[int, Any]) -> ProductResponse:
        data = {column.name: getattr(row, column.name) for column in Product.__table__.columns}
        data["images"] = list(row.images or [])
        data["code"] = build_product_code(
            paths.get(row.category_id, []),
            row.brand.code if row.brand else "",
            row.supplier_code or "",
        )
        data["brand_name"] = row.brand.name if row.brand else None
        data["brand_image"] = row.brand.image if row.brand else None
        data["category_name"] = row.category.name if row.category else None
        data["type_name"] = row.type.name if row.type else None
        data["unit_name"] = row.unit.name if row.unit else None
        data["currency_symbol"] = row.currency.symbol if row.currency else None
        data["package_items"] = [
            {
                "id": item.id,
                "item_product_id": item.item_product_id,
                "quantity": item.quantity,
                "item_name": item.item.name if item.item else None,
                "item_sku": item.item.sku if item.item else None,
            }
            for item in row.package_items
        ]
        return ProductResponse(**data)

    # ── Writes ────────────────────────────────────────────────────────────

    async def _prepare(self, db, values, existing):
        items = values.pop("package_items", None)
        values = await super()._prepare(db, values, existing)

        if "images" in values:
            values["images"] = clean_images(values["images"] or []) or None
        images = values["images"] if "images" in values else (existing.images if existing else None)
        image = values["image"] if "image" in values else (existing.image if existing else None)
        if not image and images:
            values["image"] = images[0]

        # New products without a currency take the default one
        if existing is None and not values.get("currency_id"):
            default_currency = await currency_service.get_default(db)
            if default_currency is not None:
                values["currency_id"] = default_currency.id

        if items:
            await self._validate_package_items(db, items, existing)
        return values

    async def _validate_package_items(self, db: AsyncSession, items: List[Dict[str, Any]], existing: Any) -> None:
        ids = set(merge_package_items(items))
        if existing is not None and existing.id in ids:
            raise ValidationError(message="A package cannot contain itself", field="package_items")
        with database_errors("check package items"):
            result = await db.execute(select(Product.id).where(Product.id.in_(ids)))
            found = set(result.scalars().all())
        missing = sorted(ids - found)
        if missing:
            raise ValidationError(
                message=f"Product with ID '{missing[0]}' does not exist",
                field="package_items",
                context={"missing_ids": missing},
            )

    async def _after_write(self, db, row, data, created):
        if "package_items" not in data and "is_package" not in data:
            return
        if not row.is_package:
            if not created:
                await self._replace_package_items(db, row.id, {})
            return
        if data.get("package_items") is not None:
            await self._replace_package_items(db, row.id, merge_package_items(data["package_items"]))

    async def _replace_package_items(self, db: AsyncSession, package_id: int, items: Dict[int, float]) -> None:
        await db.execute(delete(ProductPackageItem).where(ProductPackageItem.package_id == package_id))
        db.add_all(
            ProductPackageItem(package_id=package_id, item_product_id=item_id, quantity=quantity)
            for item_id, quantity in items.items()
        )
        await db.flush()

    async def copy(self, db: AsyncSession, product_id: int) -> ProductResponse:
        """
        Duplicate a product and its package contents.

        The copy is named "<name> (kopya)" and has no SKU, so it never
        collides with the source product in stock lookups.
        """
        source = await self.get_row(db, product_id)
        with database_errors("copy product", product_id=product_id):
            values = {
                column.name: getattr(source, column.name)
                for column in Product.__table__.columns
                if column.name not in _COPY_EXCLUDED
            }
            values["images"] = list(source.images) if source.images else None
            duplicate = Product(name=f"{source.name}{COPY_SUFFIX}", sku=None, **values)
            db.add(duplicate)
            await db.flush()

            if source.package_items:
                db.add_all(
                    ProductPackageItem(
                        package_id=duplicate.id,
                        item_product_id=item.item_product_id,
                        quantity=item.quantity,
                    )
                    for item in source.package_items
                )
                await db.flush()
        logger.info("Copied product %s to %s", product_id, duplicate.id)
        return await self.get(db, duplicate.id)


# ── Singleton Instance ────────────────────────────────────────────────────
product_service = ProductService()
