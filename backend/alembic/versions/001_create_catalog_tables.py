"""Create catalog, storage and settings tables

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates every table of the console: the category tree, parameter
       tables, suppliers, products with their package contents, the storage
       folder registry and app_settings.
How:   Portable column types only, so the same revision runs on SQLite and
       PostgreSQL.

Rollback: downgrade() drops all tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _sortable():
    return [
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.Integer(), server_default=sa.text("1"), nullable=False),
    ]


def upgrade() -> None:
    # group_id / category_id use 0 for "no parent", so no FOREIGN KEY
    op.create_table(
        "product_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("slug", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("icon", sa.String(500), nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        *_sortable(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_product_categories_group", "product_categories", ["group_id"])
    op.create_index("idx_product_categories_parent", "product_categories", ["category_id"])

    op.create_table(
        "product_brands",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("slug", sa.String(255), nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        *_sortable(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    for table in ("product_units", "product_types"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("code", sa.String(50), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_sortable(),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )

    op.create_table(
        "product_currencies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("symbol", sa.String(10), nullable=True),
        sa.Column("is_default", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_sortable(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "product_tax_rates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_sortable(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("product_brands.id"), nullable=True),
        sa.Column("currency_id", sa.Integer(), sa.ForeignKey("product_currencies.id"), nullable=True),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("source_file", sa.String(500), nullable=True),
        sa.Column("table_name", sa.String(255), nullable=True),
        sa.Column("record_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("column_mappings", sa.JSON(), nullable=True),
        sa.Column("column_types", sa.JSON(), nullable=True),
        *_sortable(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("barcode", sa.String(100), nullable=True),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("product_brands.id"), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("product_categories.id"), nullable=True),
        sa.Column("type_id", sa.Integer(), sa.ForeignKey("product_types.id"), nullable=True),
        sa.Column("unit_id", sa.Integer(), sa.ForeignKey("product_units.id"), nullable=True),
        sa.Column("currency_id", sa.Integer(), sa.ForeignKey("product_currencies.id"), nullable=True),
        sa.Column("price", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("quantity", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("images", sa.JSON(), nullable=True),
        sa.Column("tax_rate", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("supplier_code", sa.String(100), nullable=True),
        sa.Column("gtip_code", sa.String(50), nullable=True),
        sa.Column("is_package", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_sortable(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_products_sku", "products", ["sku"])
    op.create_index("idx_products_barcode", "products", ["barcode"])
    op.create_index("idx_products_category", "products", ["category_id"])

    op.create_table(
        "product_package_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "package_id", sa.Integer(),
            sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("item_product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_package_items_package", "product_package_items", ["package_id"])

    op.create_table(
        "storage_folders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("path", sa.String(500), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("path"),
    )

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category", "key", name="uq_app_settings_category_key"),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("storage_folders")
    op.drop_index("idx_package_items_package", table_name="product_package_items")
    op.drop_table("product_package_items")
    op.drop_index("idx_products_category", table_name="products")
    op.drop_index("idx_products_barcode", table_name="products")
    op.drop_index("idx_products_sku", table_name="products")
    op.drop_table("products")
    op.drop_table("suppliers")
    op.drop_table("product_tax_rates")
    op.drop_table("product_currencies")
    op.drop_table("product_types")
    op.drop_table("product_units")
    op.drop_table("product_brands")
    op.drop_index("idx_product_categories_parent", table_name="product_categories")
    op.drop_index("idx_product_categories_group", table_name="product_categories")
    op.drop_table("product_categories")
