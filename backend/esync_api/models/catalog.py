"""
eSync+ API — Catalog SQLAlchemy Models
=======================================

What:  ORM models for the product catalog and its parameter tables.
Who:   Used by the catalog services for CRUD and by Alembic for schema management.

Table Design:
    product_categories holds all three hierarchy levels:
        group        group_id 0/NULL, category_id 0/NULL
        category     group_id > 0 (a group), category_id 0/NULL
        subcategory  category_id > 0 (a category); group_id mirrors the parent
    A row with neither key set is therefore always a group.
    The two level keys use 0 as "no parent", so they carry no FOREIGN KEY
    constraint; the category service enforces them.

    Every other reference (product → brand, supplier → currency …) is a real
    foreign key. Deletes are refused while references exist (409).
"""

from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from esync_api.database import Base
from esync_api.models.base import SortableMixin, TimestampMixin


class ProductCategory(TimestampMixin, SortableMixin, Base):
    __tablename__ = "product_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    category_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    slug: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        Index("idx_product_categories_group", "group_id"),
        Index("idx_product_categories_parent", "category_id"),
    )

    @property
    def level(self) -> str:
        if self.category_id:
            return "subcategory"
        if self.group_id:
            return "category"
        return "group"

    def __repr__(self) -> str:
        return f"<ProductCategory(id={self.id}, code='{self.code}', level='{self.level}')>"


class ProductBrand(TimestampMixin, SortableMixin, Base):
    __tablename__ = "product_brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    slug: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class ProductUnit(TimestampMixin, SortableMixin, Base):
    __tablename__ = "product_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ProductType(TimestampMixin, SortableMixin, Base):
    __tablename__ = "product_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ProductCurrency(TimestampMixin, SortableMixin, Base):
    __tablename__ = "product_currencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # ISO 4217 code (TRY, USD, EUR); unique
    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    symbol: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")


class ProductTaxRate(TimestampMixin, SortableMixin, Base):
    __tablename__ = "product_tax_rates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Percentage, 0..100
    value: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Supplier(TimestampMixin, SortableMixin, Base):
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    brand_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_brands.id"), nullable=True)
    currency_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_currencies.id"), nullable=True)
    # excel | xml | csv
    source_type: Mapped[str] = mapped_column(String(20), nullable=False, default="excel")
    source_file: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    table_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    # {source column: product column}
    column_mappings: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    column_types: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    brand: Mapped[Optional[ProductBrand]] = relationship(lazy="raise")
    currency: Mapped[Optional[ProductCurrency]] = relationship(lazy="raise")


class Product(TimestampMixin, SortableMixin, Base):
    """
    A sellable item. A product with `is_package` set is a bundle whose
    contents are listed in product_package_items.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    brand_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_brands.id"), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_categories.id"), nullable=True)
    type_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_types.id"), nullable=True)
    unit_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_units.id"), nullable=True)
    currency_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_currencies.id"), nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # Storage keys, first one is the cover image
    images: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default="0")
    supplier_code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    gtip_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_package: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="0")

    brand: Mapped[Optional[ProductBrand]] = relationship(lazy="raise")
    category: Mapped[Optional[ProductCategory]] = relationship(lazy="raise")
    type: Mapped[Optional[ProductType]] = relationship(lazy="raise")
    unit: Mapped[Optional[ProductUnit]] = relationship(lazy="raise")
    currency: Mapped[Optional[ProductCurrency]] = relationship(lazy="raise")
    package_items: Mapped[List["ProductPackageItem"]] = relationship(
        foreign_keys="ProductPackageItem.package_id",
        cascade="all, delete-orphan",
        order_by="ProductPackageItem.id",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_products_sku", "sku"),
        Index("idx_products_barcode", "barcode"),
        Index("idx_products_category", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}')>"


class ProductPackageItem(Base):
    __tablename__ = "product_package_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    item_product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1)

    item: Mapped[Product] = relationship(foreign_keys=[item_product_id], lazy="raise")

    __table_args__ = (
        Index("idx_package_items_package", "package_id"),
    )
