"""
eSync+ API — Catalog Rule Unit Tests
=====================================

What:  Tests for the pure helpers: slugs, default codes, the category
       hierarchy flattening and product code composition.
How:   Plain objects stand in for ORM rows; no database involved.
"""

from types import SimpleNamespace

from esync_api.catalog import (
    CategoryPathItem,
    build_hierarchy,
    build_product_code,
    default_code,
    filter_hierarchy,
    get_category_path,
    slugify,
    transliterate,
)
from esync_api.catalog.text_utils import clean_optional


def row(id, name, code, group_id=None, category_id=None, sort_order=0, color=None):
    return SimpleNamespace(
        id=id, name=name, code=code, group_id=group_id,
        category_id=category_id, sort_order=sort_order, color=color,
    )


def sample_tree():
    return [
        row(1, "Ev", "EV"),
        row(2, "Mutfak", "MU", group_id=1),
        row(3, "Tava", "TA", group_id=1, category_id=2),
        row(4, "Tencere", "TE", group_id=1, category_id=2),
        row(5, "Banyo", "BA", group_id=1),
        row(6, "Bahçe", "BH", sort_order=5),
    ]


class TestTextUtils:

    def test_transliterate_turkish(self):
        assert transliterate("Şişe Açacağı") == "Sise Acacagi"

    def test_slugify_collapses_separators(self):
        assert slugify("  Ev & Yaşam Ürünleri ") == "ev-yasam-urunleri"

    def test_slugify_empty(self):
        assert slugify("") == ""
        assert slugify("!!!") == ""

    def test_default_code_two_letters(self):
        assert default_code("Kitchen") == "KI"
        assert default_code("  x ") == "X"

    def test_clean_optional(self):
        assert clean_optional("  a ") == "a"
        assert clean_optional("   ") is None
        assert clean_optional(None) is None


class TestBuildHierarchy:

    def test_order_and_levels(self):
        items = build_hierarchy(sample_tree())
        assert [item.id for item in items] == [1, 5, 3, 4, 6]
        assert [item.level for item in items] == ["group", "category", "subcategory", "subcategory", "group"]

    def test_groups_not_selectable(self):
        items = {item.id: item for item in build_hierarchy(sample_tree())}
        assert items[1].selectable is False
        assert items[5].selectable is True
        assert items[3].selectable is True

    def test_labels(self):
        items = {item.id: item for item in build_hierarchy(sample_tree())}
        assert items[1].label == "Ev [EV]"
        assert items[5].label == "Ev [EV] > Banyo [BA]"
        assert items[3].label == "Ev [EV] > Mutfak [MU] > Tava [TA]"

    def test_category_with_subcategories_is_not_emitted(self):
        ids = [item.id for item in build_hierarchy(sample_tree())]
        assert 2 not in ids

    def test_orphans_are_skipped(self):
        rows = sample_tree() + [row(9, "Kayıp", "KA", group_id=99), row(10, "Yetim", "YE", category_id=98)]
        ids = [item.id for item in build_hierarchy(rows)]
        assert 9 not in ids
        assert 10 not in ids

    def test_sort_order_before_name(self):
        rows = [row(1, "B", "B", sort_order=0), row(2, "A", "A", sort_order=1)]
        assert [item.id for item in build_hierarchy(rows)] == [1, 2]

    def test_filter_matches_label_and_codes(self):
        items = build_hierarchy(sample_tree())
        assert [item.id for item in filter_hierarchy(items, "tava")] == [3]
        assert {item.id for item in filter_hierarchy(items, "mu")} == {3, 4}
        assert filter_hierarchy(items, "  ") == items

    def test_get_category_path(self):
        path = get_category_path(sample_tree(), 3)
        assert path == [
            CategoryPathItem("Ev", "EV"),
            CategoryPathItem("Mutfak", "MU"),
            CategoryPathItem("Tava", "TA"),
        ]

    def test_get_category_path_of_parent_category_is_empty(self):
        assert get_category_path(sample_tree(), 2) == []
        assert get_category_path(sample_tree(), None) == []
        assert get_category_path(sample_tree(), 404) == []


class TestBuildProductCode:

    def test_full_code(self):
        path = [CategoryPathItem("Ev", "EV"), CategoryPathItem("Mutfak", "MU")]
        assert build_product_code(path, "ACME", " X-100 ") == "EV.MU.ACME.X-100"

    def test_blank_segments_skipped(self):
        path = [CategoryPathItem("Ev", ""), CategoryPathItem("Mutfak", "MU")]
        assert build_product_code(path, "", "X") == "MU.X"

    def test_supplier_only(self):
        assert build_product_code([], "", "X-100") == "X-100"

    def test_prefix_only(self):
        assert build_product_code([CategoryPathItem("Ev", "EV")], "AC", "") == "EV.AC"

    def test_everything_blank(self):
        assert build_product_code([], "", "  ") == ""
