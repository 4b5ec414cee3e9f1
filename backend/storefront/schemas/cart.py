"""
storefront/schemas/cart.py - Pydantic models for the shopping cart.
"""
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CartLineItem(BaseModel):
    """One product in a cart. Display fields are a snapshot taken when first added."""
    model_config = ConfigDict(frozen=True)

    product_id: str = Field(..., min_length=1, description="Catalog product ID, unique within a cart")
    title: str = Field("", description="Title at the time of adding to cart")
    brand: str = Field("", description="Brand at the time of adding to cart")
    price: Decimal = Field(..., gt=0, description="Unit price at the time of adding to cart")
    stock: int = Field(0, description="Stock snapshot (informational only)")
    quantity: int = Field(1, ge=1, description="Requested quantity")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class AddItemBody(BaseModel):
    """Add to cart by product ID only."""
    product_id: str = Field(..., description="Product ID (the same 'id' you see in /products).")

    @field_validator("product_id")
    @classmethod
    def _clean_pid(cls, v: str) -> str:
        v = (v or "").strip()
        for ch in ("\u200b", "\u200c", "\u200d", "\ufeff", "\xa0"):
            v = v.replace(ch, "")
        if not v:
            raise ValueError("product_id cannot be empty")
        return v


class SetQuantityBody(BaseModel):
    quantity: int = Field(..., ge=1, le=10000, description="Quantity (>=1).")


class CartLineOut(BaseModel):
    product_id: str
    title: str
    brand: str
    price: float
    stock: int
    quantity: int
    line_total: float
    # Current catalog values; None when the product is gone
    live_price: Optional[float] = None
    live_stock: Optional[int] = None


class CartOut(BaseModel):
    user_id: str
    items: List[CartLineOut] = Field(default_factory=list)
    total_quantity: int = 0
    total_price: float = 0.0


class CheckoutOut(BaseModel):
    message: str
    expires_in: float = Field(..., description="Seconds until the success notice expires")
    committed: Dict[str, int] = Field(default_factory=dict, description="product_id -> quantity decremented")
