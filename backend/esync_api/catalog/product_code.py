"""
Product code composition.

A product code reads group.category.subcategory.brand.supplier, e.g.
"EV.MU.TA.ACME.X-100". Only the final supplier segment is edited by hand;
the prefix follows from the selected category and brand.
"""

from typing import Iterable, NamedTuple


class CategoryPathItem(NamedTuple):
    name: str
    code: str


def build_product_code(
    category_path: Iterable[CategoryPathItem],
    brand_code: str,
    supplier_code: str,
) -> str:
    """
    Build the full product code.

    Blank category codes are skipped. The trimmed supplier code is the last
    segment; when there is no prefix it is returned on its own.

    Example:
        >>> path = [CategoryPathItem("Ev", "EV"), CategoryPathItem("Mutfak", "MU")]
        >>> build_product_code(path, "ACME", " X-100 ")
        'EV.MU.ACME.X-100'
        >>> build_product_code([], "", "X-100")
        'X-100'
    """
    prefix_parts = [item.code for item in category_path if item.code]
    if brand_code:
        prefix_parts.append(brand_code)
    prefix = ".".join(prefix_parts)

    supplier = (supplier_code or "").strip()
    if not supplier:
        return prefix
    return f"{prefix}.{supplier}" if prefix else supplier
