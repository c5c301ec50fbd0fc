"""
eSync+ API — ORM Models
========================

Importing this package registers every table on `Base.metadata`
(used by Alembic autogenerate and `database.create_all()`).
"""

from esync_api.models.catalog import (
    Product,
    ProductBrand,
    ProductCategory,
    ProductCurrency,
    ProductPackageItem,
    ProductTaxRate,
    ProductType,
    ProductUnit,
    Supplier,
)
from esync_api.models.storage import AppSetting, StorageFolder

__all__ = [
    "AppSetting",
    "Product",
    "ProductBrand",
    "ProductCategory",
    "ProductCurrency",
    "ProductPackageItem",
    "ProductTaxRate",
    "ProductType",
    "ProductUnit",
    "StorageFolder",
    "Supplier",
]
