"""
storefront/routers/carts.py
Cart endpoints for signed-in users.

Each request builds a CartController bound to the caller's uid, so the stored cart is
loaded fresh, changed through the reducer, and written back (or deleted when empty).

- GET  /cart                          snapshot lines + totals, with live catalog price/stock per line
- POST /cart/items                    add by product id (quantity + 1 if already present)
- POST /cart/items/{id}/increment     quantity + 1
- POST /cart/items/{id}/decrement     quantity - 1, never below 1
- PUT  /cart/items/{id}               set quantity (>= 1)
- DELETE /cart/items/{id}             remove one line
- DELETE /cart                        clear
- POST /cart/checkout                 stock-checked checkout

Totals use the price captured when the product was first added; `live_price`/`live_stock`
let the client show when the catalog has moved on. Checkout re-checks live stock.
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from storefront.core.auth import get_principal
from storefront.core.identity import SessionIdentity
from storefront.dependencies import get_cart_store, get_product_repository
from storefront.repositories.cart_state import CartStore
from storefront.repositories.products import ProductRepository
from storefront.schemas.cart import AddItemBody, CartLineOut, CartOut, CheckoutOut, SetQuantityBody
from storefront.schemas.principal import Principal
from storefront.services.cart_controller import CartController
from storefront.services.checkout import (
    CheckoutFailedError,
    CheckoutService,
    CheckoutValidationError,
    EmptyCartError,
)

router = APIRouter(prefix="/cart", tags=["Cart"])


def get_cart_controller(
    principal: Principal = Depends(get_principal),
    store: CartStore = Depends(get_cart_store),
) -> CartController:
    return CartController(store, SessionIdentity(principal.uid))


def get_checkout_service(products: ProductRepository = Depends(get_product_repository)) -> CheckoutService:
    return CheckoutService(products)


def _cart_out(cart: CartController, products: ProductRepository) -> CartOut:
    live = products.get_many(item.product_id for item in cart.items) if cart.items else {}
    lines = []
    for item in cart.items:
        current = live.get(item.product_id)
        lines.append(CartLineOut(
            product_id=item.product_id,
            title=item.title,
            brand=item.brand,
            price=float(item.price),
            stock=item.stock,
            quantity=item.quantity,
            line_total=float(item.line_total),
            live_price=current.price if current else None,
            live_stock=current.stock if current else None,
        ))
    return CartOut(
        user_id=cart.user_id or "",
        items=lines,
        total_quantity=cart.total_quantity,
        total_price=float(cart.total_price.quantize(Decimal("0.01"))),
    )


def _require_line(cart: CartController, product_id: str) -> None:
    if cart.get(product_id) is None:
        raise HTTPException(status_code=404, detail="Item not found in cart.")


@router.get("", response_model=CartOut)
def get_cart(
    cart: CartController = Depends(get_cart_controller),
    products: ProductRepository = Depends(get_product_repository),
):
    return _cart_out(cart, products)


@router.post("/items", response_model=CartOut)
def add_to_cart(
    payload: AddItemBody,
    cart: CartController = Depends(get_cart_controller),
    products: ProductRepository = Depends(get_product_repository),
):
    product = products.get(payload.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.price <= 0:
        raise HTTPException(status_code=409, detail="Product is not available for purchase.")
    cart.add_to_cart(product)
    return _cart_out(cart, products)


@router.post("/items/{product_id}/increment", response_model=CartOut)
def increment_item(
    product_id: str,
    cart: CartController = Depends(get_cart_controller),
    products: ProductRepository = Depends(get_product_repository),
):
    _require_line(cart, product_id)
    cart.increment(product_id)
    return _cart_out(cart, products)


@router.post("/items/{product_id}/decrement", response_model=CartOut)
def decrement_item(
    product_id: str,
    cart: CartController = Depends(get_cart_controller),
    products: ProductRepository = Depends(get_product_repository),
):
    _require_line(cart, product_id)
    cart.decrement(product_id)
    return _cart_out(cart, products)


@router.put("/items/{product_id}", response_model=CartOut)
def set_item_quantity(
    product_id: str,
    payload: SetQuantityBody,
    cart: CartController = Depends(get_cart_controller),
    products: ProductRepository = Depends(get_product_repository),
):
    _require_line(cart, product_id)
    cart.set_quantity(product_id, payload.quantity)
    return _cart_out(cart, products)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_cart_item(
    product_id: str,
    cart: CartController = Depends(get_cart_controller),
    products: ProductRepository = Depends(get_product_repository),
):
    """Remove one line by its product_id."""
    _require_line(cart, product_id)
    cart.remove_from_cart(product_id)
    return _cart_out(cart, products)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(cart: CartController = Depends(get_cart_controller)):
    """Clear the entire cart."""
    cart.clear_cart()


@router.post("/checkout", response_model=CheckoutOut)
def checkout(
    cart: CartController = Depends(get_cart_controller),
    service: CheckoutService = Depends(get_checkout_service),
):
    try:
        receipt = service.checkout(cart)
    except EmptyCartError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CheckoutValidationError as exc:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Some items exceed available stock.", "violations": exc.violations},
        )
    except CheckoutFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    notice = service.notice
    return CheckoutOut(
        message=receipt.notice.message,
        expires_in=notice.remaining if notice else 0.0,
        committed=receipt.committed,
    )
