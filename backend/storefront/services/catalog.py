"""
storefront/services/catalog.py
In-memory filtering for the customer catalog and the vendor product table.

Search is a case-insensitive substring match on the title; category is an exact match;
price ranges are the fixed buckets below with inclusive bounds. No ranking.
"""
import math
from typing import List, Optional, Sequence

from storefront.schemas.product import PriceRange, ProductOut, VendorProductPage

PRICE_RANGES: List[PriceRange] = [
    PriceRange(label="10-100", min=10, max=100),
    PriceRange(label="100-500", min=100, max=500),
    PriceRange(label="500-1000", min=500, max=1000),
    PriceRange(label="1000-5000", min=1000, max=5000),
    PriceRange(label="5000-10000", min=5000, max=10000),
    PriceRange(label="10000+", min=10000, max=None),
]

PAGE_SIZE = 10
SORT_FIELDS = ("price", "stock", "title")


def find_price_range(label: Optional[str]) -> Optional[PriceRange]:
    if not label:
        return None
    return next((r for r in PRICE_RANGES if r.label == label), None)


def categories(products: Sequence[ProductOut]) -> List[str]:
    """Distinct non-empty categories in first-seen order."""
    return list(dict.fromkeys(p.category for p in products if p.category))


def filter_products(
    products: Sequence[ProductOut],
    search: Optional[str] = None,
    category: Optional[str] = None,
    price_range: Optional[PriceRange] = None,
) -> List[ProductOut]:
    out = list(products)
    term = (search or "").strip().lower()
    if term:
        out = [p for p in out if term in p.title.lower()]
    if category:
        out = [p for p in out if p.category == category]
    if price_range is not None:
        out = [p for p in out if price_range.contains(p.price)]
    return out


def vendor_page(
    products: Sequence[ProductOut],
    category: Optional[str] = None,
    sort_by: str = "stock",
    order: str = "asc",
    page: int = 1,
) -> VendorProductPage:
    """Filter, sort and paginate a vendor's own products."""
    rows = [p for p in products if not category or p.category == category]
    if sort_by in SORT_FIELDS:
        key = (lambda p: p.title.lower()) if sort_by == "title" else (lambda p: getattr(p, sort_by))
        rows.sort(key=key, reverse=(order == "desc"))

    total_pages = max(1, math.ceil(len(rows) / PAGE_SIZE))
    page = min(max(1, page), total_pages)
    start = (page - 1) * PAGE_SIZE
    return VendorProductPage(
        items=rows[start:start + PAGE_SIZE],
        page=page,
        total_pages=total_pages,
        categories=categories(products),
    )
