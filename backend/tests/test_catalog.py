import pytest

from storefront.schemas.product import ProductOut
from storefront.services import catalog


def _product(pid, title, price, stock=1, category="Misc"):
    return ProductOut(id=pid, title=title, price=price, stock=stock, category=category)


CATALOG = [
    _product("a", "Red Running Shoes", 2499, stock=5, category="Footwear"),
    _product("b", "Blue Jeans", 1299, stock=0, category="Clothing"),
    _product("c", "USB Cable", 99, stock=40, category="Electronics"),
    _product("d", "4K Television", 45000, stock=2, category="Electronics"),
    _product("e", "Cable Organizer", 100, stock=12, category="Home"),
]


def test_search_is_case_insensitive_title_substring():
    found = catalog.filter_products(CATALOG, search="  cAbLe ")

    assert [p.id for p in found] == ["c", "e"]


def test_category_is_exact_match():
    assert [p.id for p in catalog.filter_products(CATALOG, category="Electronics")] == ["c", "d"]
    assert catalog.filter_products(CATALOG, category="electronics") == []


@pytest.mark.parametrize("label,expected", [
    ("10-100", ["c", "e"]),
    ("100-500", ["e"]),
    ("1000-5000", ["a", "b"]),
    ("10000+", ["d"]),
])
def test_price_ranges_have_inclusive_bounds(label, expected):
    bucket = catalog.find_price_range(label)

    assert [p.id for p in catalog.filter_products(CATALOG, price_range=bucket)] == expected


def test_filters_combine():
    bucket = catalog.find_price_range("10-100")

    found = catalog.filter_products(CATALOG, search="cable", category="Home", price_range=bucket)

    assert [p.id for p in found] == ["e"]


def test_unknown_price_range_label():
    assert catalog.find_price_range("cheap") is None
    assert catalog.find_price_range(None) is None


def test_categories_are_distinct_in_first_seen_order():
    assert catalog.categories(CATALOG) == ["Footwear", "Clothing", "Electronics", "Home"]


def test_vendor_page_sorts_and_filters():
    page = catalog.vendor_page(CATALOG, sort_by="price", order="desc")
    assert [p.id for p in page.items] == ["d", "a", "b", "e", "c"]

    page = catalog.vendor_page(CATALOG, category="Electronics", sort_by="stock")
    assert [p.id for p in page.items] == ["d", "c"]
    assert page.categories == ["Footwear", "Clothing", "Electronics", "Home"]


def test_vendor_page_paginates_by_ten():
    many = [_product(f"p{i:02d}", f"Item {i:02d}", 10 + i, stock=i) for i in range(23)]

    first = catalog.vendor_page(many, sort_by="stock")
    last = catalog.vendor_page(many, sort_by="stock", page=3)

    assert first.total_pages == 3
    assert len(first.items) == 10
    assert [p.id for p in last.items] == ["p20", "p21", "p22"]


def test_vendor_page_clamps_out_of_range_pages():
    page = catalog.vendor_page(CATALOG, page=9)

    assert page.page == 1
    assert page.total_pages == 1

    empty = catalog.vendor_page([], page=2)
    assert empty.items == []
    assert empty.total_pages == 1
