"""
eSync+ API — Catalog Service (Parameter Table CRUD)
====================================================

What:  Shared list/get/create/update/delete logic for every catalog table,
       plus the concrete services for brands, units, product types,
       currencies, tax rates and suppliers.
How:   `CatalogService` is configured through class attributes; resources
       with extra rules override `_prepare` (validate and normalise incoming
       values) or `_after_write` (side effects on other rows).
Who:   Called by the catalog route handlers; subclassed by CategoryService
       and ProductService.

Write Flow (POST / PUT):
    request fields ──▶ _prepare ──▶ setattr on row ──▶ flush ──▶ _after_write
                         │                                          │
                         ├─ trim name (blank → 400)                 └─ e.g. clear other
                         ├─ default code / slug from the name            default currency
                         ├─ blank optional strings → NULL
                         └─ referenced rows must exist (400 + field)

Error Handling Strategy:
    Application exceptions propagate unchanged. Anything else raised while
    talking to the database is logged and re-raised as DatabaseError, so
    clients never see SQL or driver messages.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from esync_api.catalog.text_utils import clean_optional, default_code, slugify
from esync_api.exceptions import (
    ConflictError,
    DatabaseError,
    ESyncError,
    NotFoundError,
    ValidationError,
)
from esync_api.models import (
    Product,
    ProductBrand,
    ProductCurrency,
    ProductTaxRate,
    ProductType,
    ProductUnit,
    Supplier,
)
from esync_api.schemas.catalog import (
    BrandResponse,
    CodedResponse,
    CurrencyResponse,
    SupplierResponse,
    TaxRateResponse,
)

logger = logging.getLogger(__name__)

# Product columns a supplier file column may be mapped onto
PRODUCT_MAPPING_COLUMNS = (
    "name", "sku", "barcode", "brand_id", "category_id", "type_id", "unit_id",
    "currency_id", "price", "quantity", "image", "tax_rate", "supplier_code", "gtip_code",
)


@contextmanager
def database_errors(action: str, **context: Any):
    """
    Translate unexpected exceptions raised inside the block into DatabaseError.

    Example:
        with database_errors("list brands"):
            result = await db.execute(query)
    """
    try:
        yield
    except ESyncError:
        raise
    except Exception as e:
        logger.error("Database error while trying to %s: %s", action, str(e), exc_info=True)
        raise DatabaseError(
            message=f"Could not {action}. Please try again.",
            context={**context, "error_type": type(e).__name__},
        ) from e


class CatalogService:
    """
    CRUD for one catalog table.

    Class attributes:
        model:           ORM class
        response_schema: Pydantic model rows are serialized to
        resource:        singular label used in messages ("brand")
        search_columns:  columns matched by `search` (case-insensitive substring)
        code_field:      column defaulted from the name when blank (None = none)
        slug_field:      column defaulted to slugify(name) when blank
        foreign_keys:    {field: (ORM class, label)} checked on write
        references:      ((ORM class, column, label), ...) that block a delete
    """

    model: Type[Any] = None
    response_schema: Type[BaseModel] = None
    resource: str = "record"
    search_columns: Tuple[str, ...] = ("name", "code")
    code_field: Optional[str] = "code"
    slug_field: Optional[str] = None
    foreign_keys: Dict[str, Tuple[Type[Any], str]] = {}
    references: Tuple[Tuple[Type[Any], str, str], ...] = ()

    # ── Queries ───────────────────────────────────────────────────────────

    def _base_query(self):
        """SELECT used by list and get; subclasses add eager loads here."""
        return select(self.model)

    def _search_clause(self, search: str):
        needle = search.strip()
        return or_(*(
            getattr(self.model, column).icontains(needle, autoescape=True)
            for column in self.search_columns
        ))

    def _ordering(self):
        return (self.model.sort_order, self.model.name, self.model.id)

    def serialize(self, row: Any) -> BaseModel:
        return self.response_schema.model_validate(row)

    async def list_page(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = None,
        status: Optional[int] = None,
    ) -> Tuple[List[BaseModel], int]:
        """
        One page of rows ordered by (sort_order, name, id), and the total
        number of rows matching the filters.
        """
        with database_errors(f"list {self.resource} records"):
            query = self._base_query()
            if search and search.strip():
                query = query.where(self._search_clause(search))
            if status is not None:
                query = query.where(self.model.status == status)

            total = await db.scalar(
                select(func.count()).select_from(query.order_by(None).subquery())
            )
            result = await db.execute(
                query.order_by(*self._ordering())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            rows = list(result.scalars().all())
            return await self._serialize_many(db, rows), total or 0

    async def _serialize_many(self, db: AsyncSession, rows: List[Any]) -> List[BaseModel]:
        return [self.serialize(row) for row in rows]

    async def next_sort_order(self, db: AsyncSession) -> int:
        """max(sort_order) + 1; 1 for an empty table."""
        with database_errors(f"read {self.resource} sort order"):
            current = await db.scalar(select(func.max(self.model.sort_order)))
            return (current or 0) + 1

    async def get_row(self, db: AsyncSession, record_id: int) -> Any:
        """The ORM row with eager loads applied, or NotFoundError."""
        with database_errors(f"load {self.resource}", record_id=record_id):
            result = await db.execute(
                self._base_query()
                .where(self.model.id == record_id)
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(resource=self.resource, resource_id=str(record_id))
        return row

    async def get(self, db: AsyncSession, record_id: int) -> BaseModel:
        row = await self.get_row(db, record_id)
        return (await self._serialize_many(db, [row]))[0]

    # ── Writes ────────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> BaseModel:
        values = await self._prepare(db, dict(data), existing=None)
        with database_errors(f"create {self.resource}"):
            row = self.model(**values)
            db.add(row)
            await db.flush()
            await self._after_write(db, row, data, created=True)
        logger.info("Created %s %s: %s", self.resource, row.id, row.name)
        return await self.get(db, row.id)

    async def update(self, db: AsyncSession, record_id: int, data: Dict[str, Any]) -> BaseModel:
        """Partial update: only keys present in `data` are applied."""
        row = await self.get_row(db, record_id)
        values = await self._prepare(db, dict(data), existing=row)
        with database_errors(f"update {self.resource}", record_id=record_id):
            for key, value in values.items():
                setattr(row, key, value)
            await db.flush()
            await self._after_write(db, row, data, created=False)
        logger.info("Updated %s %s", self.resource, record_id)
        return await self.get(db, record_id)

    async def delete(self, db: AsyncSession, record_id: int) -> int:
        row = await self.get_row(db, record_id)
        await self._check_references(db, record_id)
        with database_errors(f"delete {self.resource}", record_id=record_id):
            await db.delete(row)
            await db.flush()
        logger.info("Deleted %s %s", self.resource, record_id)
        return record_id

    async def _check_references(self, db: AsyncSession, record_id: int) -> None:
        counts: Dict[str, int] = {}
        with database_errors(f"check {self.resource} references", record_id=record_id):
            for ref_model, column, label in self.references:
                count = await db.scalar(
                    select(func.count()).select_from(ref_model)
                    .where(getattr(ref_model, column) == record_id)
                )
                if count:
                    counts[label] = count
        if counts:
            summary = ", ".join(f"{count} {label}" for label, count in counts.items())
            raise ConflictError(
                message=f"Cannot delete {self.resource}: it is used by {summary}",
                context={"references": counts},
            )

    # ── Normalisation Hooks ───────────────────────────────────────────────

    async def _prepare(self, db: AsyncSession, values: Dict[str, Any], existing: Any) -> Dict[str, Any]:
        """
        Validate and normalise incoming values.

        `existing` is None on create. Only keys present in `values` are
        written, so a partial update leaves other columns untouched.
        """
        table = self.model.__table__

        # NOT NULL columns sent as null keep their current/default value
        for key in list(values):
            column = table.c.get(key)
            if column is not None and not column.nullable and values[key] is None:
                values.pop(key)

        if existing is None or "name" in values:
            name = (values.get("name") or "").strip()
            if not name:
                raise ValidationError(message="Name is required", field="name")
            values["name"] = name
        name = values.get("name", existing.name if existing is not None else "")

        for key, value in list(values.items()):
            column = table.c.get(key)
            if isinstance(value, str) and column is not None:
                values[key] = clean_optional(value) if column.nullable else value.strip()

        if self.code_field:
            if existing is None or self.code_field in values:
                if not values.get(self.code_field):
                    values[self.code_field] = default_code(name)

        if self.slug_field:
            if existing is None or self.slug_field in values:
                if not values.get(self.slug_field):
                    values[self.slug_field] = slugify(name) or None

        for field, (ref_model, label) in self.foreign_keys.items():
            if field in values:
                values[field] = await self._check_reference_exists(
                    db, ref_model, label, field, values[field]
                )
        return values

    async def _check_reference_exists(
        self, db: AsyncSession, ref_model: Type[Any], label: str, field: str, value: Optional[int]
    ) -> Optional[int]:
        """0 and None both mean "no reference"; otherwise the row must exist."""
        if not value:
            return None
        with database_errors(f"check {field}"):
            found = await db.get(ref_model, value)
        if found is None:
            raise ValidationError(message=f"{label} with ID '{value}' does not exist", field=field)
        return value

    async def _after_write(self, db: AsyncSession, row: Any, data: Dict[str, Any], created: bool) -> None:
        """Hook for writes that touch other rows; runs inside the same transaction."""


# ══════════════════════════════════════════════════════════════════════════
# Parameter Tables
# ══════════════════════════════════════════════════════════════════════════


class BrandService(CatalogService):
    model = ProductBrand
    response_schema = BrandResponse
    resource = "brand"
    search_columns = ("name", "code", "slug", "country")
    slug_field = "slug"
    references = (
        (Product, "brand_id", "products"),
        (Supplier, "brand_id", "suppliers"),
    )


class UnitService(CatalogService):
    model = ProductUnit
    response_schema = CodedResponse
    resource = "unit"
    references = ((Product, "unit_id", "products"),)


class ProductTypeService(CatalogService):
    model = ProductType
    response_schema = CodedResponse
    resource = "product type"
    references = ((Product, "type_id", "products"),)


class CurrencyService(CatalogService):
    """
    Currencies carry a unique ISO code and at most one default row.

    Saving a row with is_default=true clears the flag on every other row in
    the same transaction, so readers never see two defaults.
    """

    model = ProductCurrency
    response_schema = CurrencyResponse
    resource = "currency"
    search_columns = ("name", "code", "symbol")
    references = (
        (Product, "currency_id", "products"),
        (Supplier, "currency_id", "suppliers"),
    )

    async def _prepare(self, db, values, existing):
        values = await super()._prepare(db, values, existing)
        if "code" in values:
            code = values["code"].upper()
            values["code"] = code
            query = select(ProductCurrency.id).where(ProductCurrency.code == code)
            if existing is not None:
                query = query.where(ProductCurrency.id != existing.id)
            with database_errors("check currency code"):
                duplicate = await db.scalar(query)
            if duplicate is not None:
                raise ConflictError(
                    message=f"Currency code '{code}' is already in use",
                    context={"field": "code", "existing_id": duplicate},
                )
        return values

    async def _after_write(self, db, row, data, created):
        if row.is_default:
            await db.execute(
                update(ProductCurrency)
                .where(ProductCurrency.id != row.id, ProductCurrency.is_default.is_(True))
                .values(is_default=False)
                .execution_options(synchronize_session="fetch")
            )

    async def get_default(self, db: AsyncSession) -> Optional[ProductCurrency]:
        with database_errors("load default currency"):
            return await db.scalar(select(ProductCurrency).where(ProductCurrency.is_default.is_(True)))


class TaxRateService(CatalogService):
    model = ProductTaxRate
    response_schema = TaxRateResponse
    resource = "tax rate"
    search_columns = ("name", "description")
    code_field = None


class SupplierService(CatalogService):
    """
    Suppliers describe an external product list (Excel, XML or CSV) and how
    its columns map onto product columns.

    column_mappings example:
        {"Stok Kodu": "sku", "Ürün Adı": "name", "Fiyat": "price"}
    """

    model = Supplier
    response_schema = SupplierResponse
    resource = "supplier"
    search_columns = ("name", "table_name", "source_file")
    code_field = None
    foreign_keys = {
        "brand_id": (ProductBrand, "Brand"),
        "currency_id": (ProductCurrency, "Currency"),
    }

    def _base_query(self):
        return select(Supplier).options(
            selectinload(Supplier.brand),
            selectinload(Supplier.currency),
        )

    def serialize(self, row: Supplier) -> SupplierResponse:
        data = SupplierResponse.model_validate(row).model_dump()
        data["brand_name"] = row.brand.name if row.brand else None
        data["currency_symbol"] = row.currency.symbol if row.currency else None
        return SupplierResponse(**data)

    async def _prepare(self, db, values, existing):
        # JSON text is parsed before the generic string cleanup sees it
        if "column_mappings" in values:
            values["column_mappings"] = normalize_column_mappings(values["column_mappings"])
        if "column_types" in values:
            values["column_types"] = normalize_column_types(values["column_types"])
        return await super()._prepare(db, values, existing)


def _load_json_object(raw: Any, field: str) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError(message=f"{field} is not valid JSON", field=field)
    if not isinstance(raw, dict):
        raise ValidationError(message=f"{field} must be a JSON object", field=field)
    return raw


def normalize_column_mappings(raw: Any) -> Optional[Dict[str, str]]:
    """
    Clean a {source column: product column} mapping.

    Entries with a blank source or target are dropped; every target must be
    a product column. An empty result is stored as NULL.
    """
    mapping = _load_json_object(raw, "column_mappings")
    if not mapping:
        return None

    cleaned: Dict[str, str] = {}
    for source, target in mapping.items():
        source = str(source).strip()
        target = str(target).strip() if target is not None else ""
        if not source or not target:
            continue
        if target not in PRODUCT_MAPPING_COLUMNS:
            raise ValidationError(
                message=f"'{target}' is not a product column",
                field="column_mappings",
                context={"allowed": list(PRODUCT_MAPPING_COLUMNS)},
            )
        cleaned[source] = target
    return cleaned or None


def normalize_column_types(raw: Any) -> Optional[Dict[str, Any]]:
    types = _load_json_object(raw, "column_types")
    if not types:
        return None
    cleaned = {str(k).strip(): v for k, v in types.items() if str(k).strip()}
    return cleaned or None


# ── Singleton Instances ───────────────────────────────────────────────────
brand_service = BrandService()
unit_service = UnitService()
product_type_service = ProductTypeService()
currency_service = CurrencyService()
tax_rate_service = TaxRateService()
supplier_service = SupplierService()
