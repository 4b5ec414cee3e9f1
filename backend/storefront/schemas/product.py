"""
# `storefront/schemas/product.py` — Product schemas

## Stored document (`products/{id}`)
| Field       | Type    | Notes |
|-------------|---------|-------|
| title       | `str`   | Product title |
| category    | `str`   | Free-text category, used by the catalog filter |
| brand       | `str`   | Brand name |
| price       | `float` | Unit price (> 0) |
| stock       | `int`   | Authoritative stock counter (≥ 0) |
| description | `str`   | Long description |
| image_url   | `str`   | Image address |
| vendor_id   | `str`   | UID of the owning vendor |
| created_at  | timestamp | Server timestamp |

## Input
`ProductIn` is what the vendor console submits (create and full edit).
Every field is required; the first failing rule is reported with a short message,
e.g. `Product title is required.` or `Valid price is required.`

## Output
`ProductOut` is returned by catalog and vendor endpoints.
`VendorProductPage` is one page of the vendor's own product table.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from fastapi import Form, HTTPException, status
from pydantic import BaseModel, Field, ValidationError, field_validator

_REQUIRED_TEXT = {
    "title": "Product title is required.",
    "category": "Category is required.",
    "brand": "Brand is required.",
    "description": "Description is required.",
    "image_url": "Image URL is required.",
}


class ProductIn(BaseModel):
    title: str
    category: str
    brand: str
    price: float
    stock: int
    description: str
    image_url: str

    @field_validator("title", "category", "brand", "description", "image_url", mode="before")
    @classmethod
    def _required_text(cls, v: Any, info) -> str:
        v = "" if v is None else str(v).strip()
        if not v:
            raise ValueError(_REQUIRED_TEXT[info.field_name])
        return v

    @field_validator("price", mode="before")
    @classmethod
    def _valid_price(cls, v: Any) -> float:
        try:
            price = Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            raise ValueError("Valid price is required.")
        if not price.is_finite() or price <= 0:
            raise ValueError("Valid price is required.")
        return float(price)

    @field_validator("stock", mode="before")
    @classmethod
    def _valid_stock(cls, v: Any) -> int:
        try:
            stock = Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            raise ValueError("Valid stock is required.")
        if not stock.is_finite() or stock < 0 or stock != stock.to_integral_value():
            raise ValueError("Valid stock is required.")
        return int(stock)

    # Form-data support
    @classmethod
    def as_form(
        cls,
        title: str = Form(""),
        category: str = Form(""),
        brand: str = Form(""),
        price: str = Form(""),
        stock: str = Form(""),
        description: str = Form(""),
        image_url: str = Form(""),
    ) -> "ProductIn":
        try:
            return cls(
                title=title,
                category=category,
                brand=brand,
                price=price,
                stock=stock,
                description=description,
                image_url=image_url,
            )
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=first_error_message(exc),
            )


def first_error_message(exc: ValidationError) -> str:
    """Plain message of the first failing rule (without pydantic's 'Value error, ' prefix)."""
    errors = exc.errors()
    if not errors:
        return "Invalid product."
    err = errors[0]
    cause = (err.get("ctx") or {}).get("error")
    return str(cause) if cause is not None else err.get("msg", "Invalid product.")


class ProductOut(BaseModel):
    id: str
    title: str
    category: str = ""
    brand: str = ""
    price: float
    stock: int = 0
    description: str = ""
    image_url: str = ""
    vendor_id: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_doc(cls, doc_id: str, src: dict) -> "ProductOut":
        return cls(
            id=src.get("id", doc_id),
            title=src.get("title", ""),
            category=src.get("category", "") or "",
            brand=src.get("brand", "") or "",
            price=float(src.get("price", 0) or 0),
            stock=int(src.get("stock", 0) or 0),
            description=src.get("description", "") or "",
            image_url=src.get("image_url", "") or "",
            vendor_id=src.get("vendor_id"),
        )


class PriceRange(BaseModel):
    label: str
    min: float
    max: Optional[float] = Field(None, description="Inclusive upper bound; None means no limit")

    def contains(self, price: float) -> bool:
        return price >= self.min and (self.max is None or price <= self.max)


class VendorProductPage(BaseModel):
    items: List[ProductOut] = Field(default_factory=list)
    page: int = 1
    total_pages: int = 1
    categories: List[str] = Field(default_factory=list)
