"""
eSync+ API — Catalog Request/Response Schemas
==============================================

What:  Pydantic models for the product catalog and its parameter tables.
How:   Each resource has three models:
         <Name>Update    every field optional; PUT applies only the fields sent
         <Name>Create    same fields, `name` required
         <Name>Response  the stored row (from_attributes)
       Business rules that need the database (unknown brand, level of a
       parent category, duplicate currency code) live in the services and
       answer 400/409; the constraints here are shape checks and answer 422.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from esync_api.schemas.common import RecordResponse

SourceType = Literal["excel", "xml", "csv"]


class SortableFields(BaseModel):
    sort_order: Optional[int] = Field(default=None, ge=0)
    status: Optional[Literal[0, 1]] = Field(default=None, description="1 = active, 0 = passive")


# ── Product Categories ────────────────────────────────────────────────────


class CategoryUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=255)
    code: Optional[str] = Field(default=None, max_length=50)
    slug: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = Field(default=None, max_length=500)
    icon: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=20)
    group_id: Optional[int] = Field(default=None, ge=0, description="Group of a category; 0/null for a group")
    category_id: Optional[int] = Field(default=None, ge=0, description="Parent category of a subcategory")


class CategoryCreate(CategoryUpdate):
    name: str = Field(max_length=255)


class CategoryResponse(RecordResponse):
    name: str
    code: str
    slug: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    group_id: Optional[int] = None
    category_id: Optional[int] = None
    level: str


class CategoryPathElement(BaseModel):
    name: str
    code: str


class HierarchyItemResponse(BaseModel):
    id: int
    label: str = Field(description='"Group [G] > Category [C] > Subcategory [S]"')
    path: List[CategoryPathElement]
    level: Literal["group", "category", "subcategory"]
    selectable: bool
    color: Optional[str] = None


class HierarchyResponse(BaseModel):
    data: List[HierarchyItemResponse]


class CategoryPathResponse(BaseModel):
    path: List[CategoryPathElement]
    code: str = Field(description="Codes of the path joined with '.'")


class ProductCodeResponse(BaseModel):
    code: str = Field(description="Full product code including the supplier segment")
    prefix: str = Field(description="Category and brand segments only")


# ── Brands ────────────────────────────────────────────────────────────────


class BrandUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=255)
    code: Optional[str] = Field(default=None, max_length=50)
    slug: Optional[str] = Field(default=None, max_length=255)
    image: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    website: Optional[str] = Field(default=None, max_length=500)
    country: Optional[str] = Field(default=None, max_length=100)


class BrandCreate(BrandUpdate):
    name: str = Field(max_length=255)


class BrandResponse(RecordResponse):
    name: str
    code: str
    slug: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    country: Optional[str] = None


# ── Units and Product Types ───────────────────────────────────────────────


class CodedUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=255)
    code: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None


class CodedCreate(CodedUpdate):
    name: str = Field(max_length=255)


class CodedResponse(RecordResponse):
    name: str
    code: str
    description: Optional[str] = None


UnitUpdate, UnitCreate, UnitResponse = CodedUpdate, CodedCreate, CodedResponse
ProductTypeUpdate, ProductTypeCreate, ProductTypeResponse = CodedUpdate, CodedCreate, CodedResponse


# ── Currencies ────────────────────────────────────────────────────────────


class CurrencyUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=255)
    code: Optional[str] = Field(default=None, max_length=10, description="ISO 4217 code, unique")
    symbol: Optional[str] = Field(default=None, max_length=10)
    is_default: Optional[bool] = None


class CurrencyCreate(CurrencyUpdate):
    name: str = Field(max_length=255)


class CurrencyResponse(RecordResponse):
    name: str
    code: str
    symbol: Optional[str] = None
    is_default: bool = False


# ── Tax Rates ─────────────────────────────────────────────────────────────


class TaxRateUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=255)
    value: Optional[float] = Field(default=None, ge=0, le=100, description="Percentage")
    description: Optional[str] = None


class TaxRateCreate(TaxRateUpdate):
    name: str = Field(max_length=255)


class TaxRateResponse(RecordResponse):
    name: str
    value: float
    description: Optional[str] = None


# ── Suppliers ─────────────────────────────────────────────────────────────


class SupplierUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=255)
    brand_id: Optional[int] = Field(default=None, ge=0)
    currency_id: Optional[int] = Field(default=None, ge=0)
    source_type: Optional[SourceType] = None
    source_file: Optional[str] = Field(default=None, max_length=500)
    table_name: Optional[str] = Field(default=None, max_length=255)
    record_count: Optional[int] = Field(default=None, ge=0)
    # JSON object or JSON text, {source column: product column}
    column_mappings: Optional[Union[Dict[str, Any], str]] = None
    column_types: Optional[Union[Dict[str, Any], str]] = None


class SupplierCreate(SupplierUpdate):
    name: str = Field(max_length=255)


class SupplierResponse(RecordResponse):
    name: str
    brand_id: Optional[int] = None
    currency_id: Optional[int] = None
    source_type: str
    source_file: Optional[str] = None
    table_name: Optional[str] = None
    record_count: int = 0
    column_mappings: Optional[Dict[str, str]] = None
    column_types: Optional[Dict[str, Any]] = None
    brand_name: Optional[str] = None
    currency_symbol: Optional[str] = None


# ── Products ──────────────────────────────────────────────────────────────


class PackageItemInput(BaseModel):
    item_product_id: int = Field(gt=0)
    quantity: float = Field(default=1, gt=0)


class PackageItemResponse(BaseModel):
    id: int
    item_product_id: int
    quantity: float
    item_name: Optional[str] = None
    item_sku: Optional[str] = None


class ProductUpdate(SortableFields):
    name: Optional[str] = Field(default=None, max_length=500)
    sku: Optional[str] = Field(default=None, max_length=100)
    barcode: Optional[str] = Field(default=None, max_length=100)
    brand_id: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = Field(default=None, ge=0)
    type_id: Optional[int] = Field(default=None, ge=0)
    unit_id: Optional[int] = Field(default=None, ge=0)
    currency_id: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    quantity: Optional[float] = None
    image: Optional[str] = Field(default=None, max_length=500)
    images: Optional[List[str]] = Field(default=None, description="Storage keys, first one is the cover")
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
    supplier_code: Optional[str] = Field(default=None, max_length=100)
    gtip_code: Optional[str] = Field(default=None, max_length=50)
    is_package: Optional[bool] = None
    package_items: Optional[List[PackageItemInput]] = None


class ProductCreate(ProductUpdate):
    name: str = Field(max_length=500)


class ProductResponse(RecordResponse):
    name: str
    sku: Optional[str] = None
    barcode: Optional[str] = None
    brand_id: Optional[int] = None
    category_id: Optional[int] = None
    type_id: Optional[int] = None
    unit_id: Optional[int] = None
    currency_id: Optional[int] = None
    price: float = 0
    quantity: float = 0
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    tax_rate: float = 0
    supplier_code: Optional[str] = None
    gtip_code: Optional[str] = None
    is_package: bool = False
    code: str = Field(default="", description="Composed product code")
    brand_name: Optional[str] = None
    brand_image: Optional[str] = None
    category_name: Optional[str] = None
    type_name: Optional[str] = None
    unit_name: Optional[str] = None
    currency_symbol: Optional[str] = None
    package_items: List[PackageItemResponse] = Field(default_factory=list)
