"""
eSync+ API — Catalog Rules
===========================

What:  Pure functions shared by services, routes and tests:
       category hierarchy flattening, product code composition,
       slugs and default codes. No database or HTTP access here.
"""

from esync_api.catalog.hierarchy import (
    HierarchyItem,
    build_hierarchy,
    filter_hierarchy,
    get_category_path,
)
from esync_api.catalog.product_code import CategoryPathItem, build_product_code
from esync_api.catalog.text_utils import default_code, slugify, transliterate

__all__ = [
    "CategoryPathItem",
    "HierarchyItem",
    "build_hierarchy",
    "build_product_code",
    "default_code",
    "filter_hierarchy",
    "get_category_path",
    "slugify",
    "transliterate",
]
