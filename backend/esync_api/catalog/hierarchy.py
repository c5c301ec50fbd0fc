"""
Category hierarchy flattening.

product_categories stores three levels in one table (see models.catalog).
`build_hierarchy` turns the rows into the ordered list the category picker
shows: a non-selectable heading per group, then one selectable entry per
leaf (a category without subcategories, or each subcategory).

    Ev [EV]                                  group, not selectable
    Ev [EV] > Mutfak [MU] > Tava [TA]        subcategory
    Ev [EV] > Mutfak [MU] > Tencere [TE]     subcategory
    Ev [EV] > Banyo [BA]                     category (leaf)

The functions are pure: they take any objects exposing id, name, code,
group_id, category_id, sort_order and color (ORM rows or schemas).
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from esync_api.catalog.product_code import CategoryPathItem

LEVEL_GROUP = "group"
LEVEL_CATEGORY = "category"
LEVEL_SUBCATEGORY = "subcategory"


@dataclass
class HierarchyItem:
    id: int
    label: str
    path: List[CategoryPathItem] = field(default_factory=list)
    level: str = LEVEL_CATEGORY
    selectable: bool = True
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "path": [{"name": p.name, "code": p.code} for p in self.path],
            "level": self.level,
            "selectable": self.selectable,
            "color": self.color,
        }


def _sort_key(row: Any):
    return (getattr(row, "sort_order", 0) or 0, (row.name or "").casefold(), row.id)


def _segment(row: Any) -> str:
    return f"{row.name} [{row.code or ''}]"


def _path_item(row: Any) -> CategoryPathItem:
    return CategoryPathItem(name=row.name, code=row.code or "")


def build_hierarchy(categories: Iterable[Any]) -> List[HierarchyItem]:
    """
    Flatten category rows into picker order in a single pass per level.

    Groups, their categories and subcategories are each ordered by
    (sort_order, name). Rows whose group or parent does not exist are
    not emitted.
    """
    rows = list(categories)
    groups = [c for c in rows if not c.group_id and not c.category_id]

    by_group: Dict[int, List[Any]] = defaultdict(list)
    by_parent: Dict[int, List[Any]] = defaultdict(list)
    for row in rows:
        if row.category_id:
            by_parent[row.category_id].append(row)
        elif row.group_id and row.group_id > 0:
            by_group[row.group_id].append(row)

    result: List[HierarchyItem] = []
    for group in sorted(groups, key=_sort_key):
        group_path = [_path_item(group)]
        result.append(HierarchyItem(
            id=group.id,
            label=_segment(group),
            path=group_path,
            level=LEVEL_GROUP,
            selectable=False,
            color=getattr(group, "color", None),
        ))

        for category in sorted(by_group.get(group.id, []), key=_sort_key):
            category_label = f"{_segment(group)} > {_segment(category)}"
            category_path = group_path + [_path_item(category)]
            subcategories = sorted(by_parent.get(category.id, []), key=_sort_key)

            if not subcategories:
                result.append(HierarchyItem(
                    id=category.id,
                    label=category_label,
                    path=category_path,
                    level=LEVEL_CATEGORY,
                    color=getattr(category, "color", None),
                ))
                continue

            for sub in subcategories:
                result.append(HierarchyItem(
                    id=sub.id,
                    label=f"{category_label} > {_segment(sub)}",
                    path=category_path + [_path_item(sub)],
                    level=LEVEL_SUBCATEGORY,
                    color=getattr(sub, "color", None),
                ))

    return result


def filter_hierarchy(items: Iterable[HierarchyItem], query: str) -> List[HierarchyItem]:
    """Case-insensitive match on the label or any path element's name or code."""
    needle = (query or "").strip().casefold()
    if not needle:
        return list(items)
    return [
        item for item in items
        if needle in item.label.casefold()
        or any(needle in p.name.casefold() or (p.code and needle in p.code.casefold()) for p in item.path)
    ]


def get_category_path(categories: Iterable[Any], category_id: Optional[int]) -> List[CategoryPathItem]:
    """Path of the hierarchy entry for `category_id`; empty when unknown."""
    if not category_id:
        return []
    for item in build_hierarchy(categories):
        if item.id == category_id:
            return item.path
    return []
