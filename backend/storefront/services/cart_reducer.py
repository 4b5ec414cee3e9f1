"""
storefront/services/cart_reducer.py
Pure state transitions over cart line items.

`reduce(items, op)` never performs I/O and never raises: operations it does not
recognise return the input unchanged. A cart is a tuple of `CartLineItem`,
insertion ordered and unique by `product_id`.

| Operation           | Effect |
|---------------------|--------|
| `Init(items)`       | Replace the whole cart |
| `Add(product)`      | quantity + 1 on an existing line, else append with quantity 1 |
| `Remove(id)`        | Drop the line (no-op if absent) |
| `Increment(id)`     | quantity + 1 |
| `Decrement(id)`     | quantity - 1, never below 1 |
| `SetQuantity(id,n)` | quantity = n as given; callers clamp |
| `Clear()`           | Empty cart |

`Add` keeps the title/brand/price/stock captured on first add; only the quantity changes.
A product that cannot form a valid line (no id, price not above zero) is not added.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Tuple

from pydantic import ValidationError

from storefront.schemas.cart import CartLineItem

Cart = Tuple[CartLineItem, ...]


@dataclass(frozen=True)
class Init:
    items: Tuple[CartLineItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Add:
    product: Any


@dataclass(frozen=True)
class Remove:
    product_id: str


@dataclass(frozen=True)
class Increment:
    product_id: str


@dataclass(frozen=True)
class Decrement:
    product_id: str


@dataclass(frozen=True)
class SetQuantity:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Clear:
    pass


def _field(product: Any, name: str, default: Any = None) -> Any:
    if isinstance(product, dict):
        return product.get(name, default)
    return getattr(product, name, default)


def _as_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def _as_int(value: Any) -> int:
    try:
        return int(Decimal(str(value if value is not None else 0)))
    except (InvalidOperation, ValueError, TypeError, OverflowError):
        return 0


def line_from_product(product: Any) -> CartLineItem:
    """
    New line with quantity 1 copying the product's display fields and stock snapshot.
    Raises ValidationError when the product cannot form a valid line.
    """
    product_id = _field(product, "id") or _field(product, "product_id")
    return CartLineItem(
        product_id=str(product_id or ""),
        title=str(_field(product, "title", "") or ""),
        brand=str(_field(product, "brand", "") or ""),
        price=_as_decimal(_field(product, "price", 0)),
        stock=_as_int(_field(product, "stock", 0)),
        quantity=1,
    )


def _with_quantity(items: Cart, product_id: str, quantity_of) -> Cart:
    return tuple(
        item.model_copy(update={"quantity": quantity_of(item)}) if item.product_id == product_id else item
        for item in items
    )


def reduce(items: Cart, op: Any) -> Cart:
    """Apply one operation and return the new cart."""
    if isinstance(op, Init):
        return tuple(op.items)

    if isinstance(op, Add):
        product_id = _field(op.product, "id") or _field(op.product, "product_id")
        if product_id is None:
            return items
        product_id = str(product_id)
        if any(item.product_id == product_id for item in items):
            return _with_quantity(items, product_id, lambda item: item.quantity + 1)
        try:
            return items + (line_from_product(op.product),)
        except ValidationError:
            return items

    if isinstance(op, Remove):
        return tuple(item for item in items if item.product_id != op.product_id)

    if isinstance(op, Increment):
        return _with_quantity(items, op.product_id, lambda item: item.quantity + 1)

    if isinstance(op, Decrement):
        return _with_quantity(items, op.product_id, lambda item: max(1, item.quantity - 1))

    if isinstance(op, SetQuantity):
        return _with_quantity(items, op.product_id, lambda item: op.quantity)

    if isinstance(op, Clear):
        return ()

    return items


def replay(ops: Iterable[Any], items: Cart = ()) -> Cart:
    """Fold a sequence of operations over a starting cart."""
    for op in ops:
        items = reduce(items, op)
    return items
