"""
# `storefront/routers/products.py` — Catalog and vendor console

## Customer side

### `GET /products`
All products. Optional filters, combined with AND:
- `search`: case-insensitive substring of the title
- `category`: exact category
- `price_range`: one of the labels from `GET /products/price-ranges`

### `GET /products/categories`
Distinct categories present in the catalog.

### `GET /products/{product_id}`
Single product, `404` if it does not exist.

## Vendor side (`Vendor` role only)

### `GET /vendor/products`
The caller's own products: `category` filter, `sort_by` (`price` | `stock` | `title`),
`order` (`asc` | `desc`), `page` (10 per page).

### `POST /vendor/products`
Create from form fields (title, category, brand, price, stock, description, image_url).

### `PUT /vendor/products/{product_id}`
Full edit with the same validation. Only the owning vendor.

### `DELETE /vendor/products/{product_id}`
Only the owning vendor.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.core.security import require_vendor
from storefront.dependencies import get_product_repository
from storefront.repositories.products import ProductNotFoundError, ProductRepository
from storefront.schemas.principal import Principal
from storefront.schemas.product import PriceRange, ProductIn, ProductOut, VendorProductPage
from storefront.services import catalog

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductOut], summary="List Products")
def list_products(
    search: Optional[str] = Query(None, description="Substring of the title"),
    category: Optional[str] = Query(None, description="Exact category"),
    price_range: Optional[str] = Query(None, description="Price range label"),
    products: ProductRepository = Depends(get_product_repository),
):
    bucket = None
    if price_range:
        bucket = catalog.find_price_range(price_range)
        if bucket is None:
            raise HTTPException(status_code=400, detail=f"Unknown price range: {price_range}")
    return catalog.filter_products(products.list_products(), search=search, category=category, price_range=bucket)


@router.get("/categories", response_model=List[str])
def list_categories(products: ProductRepository = Depends(get_product_repository)):
    return catalog.categories(products.list_products())


@router.get("/price-ranges", response_model=List[PriceRange])
def list_price_ranges():
    return catalog.PRICE_RANGES


@router.get("/{product_id}", response_model=ProductOut, summary="Get Product")
def get_product(product_id: str, products: ProductRepository = Depends(get_product_repository)):
    product = products.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# Vendor sub-router for product management
vendor_router = APIRouter(prefix="/vendor/products", tags=["Vendor: Products"])


def _owned_product(product_id: str, vendor: Principal, products: ProductRepository) -> ProductOut:
    product = products.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.vendor_id != vendor.uid:
        raise HTTPException(status_code=403, detail="You can only manage your own products")
    return product


@vendor_router.get("", response_model=VendorProductPage)
def list_my_products(
    category: Optional[str] = Query(None),
    sort_by: str = Query("stock", pattern="^(price|stock|title)$"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    vendor: Principal = Depends(require_vendor),
    products: ProductRepository = Depends(get_product_repository),
):
    return catalog.vendor_page(
        products.list_by_vendor(vendor.uid),
        category=category,
        sort_by=sort_by,
        order=order,
        page=page,
    )


@vendor_router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    vendor: Principal = Depends(require_vendor),
    product_in: ProductIn = Depends(ProductIn.as_form),
    products: ProductRepository = Depends(get_product_repository),
):
    return products.create(vendor.uid, product_in)


@vendor_router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    vendor: Principal = Depends(require_vendor),
    product_in: ProductIn = Depends(ProductIn.as_form),
    products: ProductRepository = Depends(get_product_repository),
):
    _owned_product(product_id, vendor, products)
    try:
        return products.update(product_id, product_in)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")


@vendor_router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    vendor: Principal = Depends(require_vendor),
    products: ProductRepository = Depends(get_product_repository),
):
    _owned_product(product_id, vendor, products)
    products.delete(product_id)
