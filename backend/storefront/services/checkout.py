"""
storefront/services/checkout.py
Stock-aware checkout for a session's cart.

1. Every line is checked against its cached stock snapshot; all over-limit lines are
   reported together and nothing is touched.
2. Lines are committed one by one in cart order with an atomic conditional decrement of
   the live stock counter, so a purchase never takes more than is left at commit time.
3. If a later line fails, the lines already committed in this checkout get their stock
   back (compensating increments) and the cart is kept.
4. On success the cart is cleared and a short-lived success notice is exposed.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from storefront.config import settings
from storefront.repositories.products import InsufficientStockError, ProductNotFoundError
from storefront.schemas.cart import CartLineItem
from storefront.services.cart_controller import CartController

logger = logging.getLogger("storefront.checkout")

SUCCESS_MESSAGE = "Order placed successfully!"
FAILURE_MESSAGE = "Checkout failed. Please try again."


class StockLedger(Protocol):
    def decrement_stock(self, product_id: str, quantity: int) -> int: ...
    def restore_stock(self, product_id: str, quantity: int) -> None: ...


class CheckoutError(Exception):
    pass


class EmptyCartError(CheckoutError):
    pass


class CheckoutValidationError(CheckoutError):
    def __init__(self, violations: Dict[str, str]):
        super().__init__("; ".join(violations.values()))
        self.violations = violations


class CheckoutFailedError(CheckoutError):
    pass


def _name(item: CartLineItem) -> str:
    return item.title or item.product_id


def over_limit_message(item: CartLineItem, available: Optional[int] = None) -> str:
    available = item.stock if available is None else available
    return f"Only {available} of {_name(item)} in stock; you requested {item.quantity}."


@dataclass
class CheckoutNotice:
    message: str
    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    @property
    def remaining(self) -> float:
        return max(0.0, self.expires_at - self.clock())

    @property
    def active(self) -> bool:
        return self.remaining > 0


@dataclass
class CheckoutReceipt:
    committed: Dict[str, int]
    notice: CheckoutNotice


class CheckoutService:
    def __init__(
        self,
        stock: StockLedger,
        notice_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stock = stock
        self.notice_seconds = notice_seconds if notice_seconds is not None else settings.checkout_notice_seconds
        self.clock = clock
        self._notice: Optional[CheckoutNotice] = None

    @property
    def notice(self) -> Optional[CheckoutNotice]:
        """The last success notice, or None once it has expired."""
        if self._notice is not None and not self._notice.active:
            self._notice = None
        return self._notice

    def validate(self, items: Iterable[CartLineItem]) -> Dict[str, str]:
        return {
            item.product_id: over_limit_message(item)
            for item in items
            if item.quantity > item.stock
        }

    def checkout(self, cart: CartController) -> CheckoutReceipt:
        items = cart.items
        if not items:
            raise EmptyCartError("Cart is empty.")

        violations = self.validate(items)
        if violations:
            logger.info("Checkout blocked for %s: %s", cart.user_id, sorted(violations))
            raise CheckoutValidationError(violations)

        applied: List[CartLineItem] = []
        try:
            for line in items:
                remaining = self.stock.decrement_stock(line.product_id, line.quantity)
                applied.append(line)
                logger.debug("Took %d of %s, %d left", line.quantity, line.product_id, remaining)
        except InsufficientStockError as exc:
            self._compensate(applied)
            raise CheckoutValidationError({line.product_id: over_limit_message(line, exc.available)}) from exc
        except ProductNotFoundError as exc:
            self._compensate(applied)
            raise CheckoutValidationError({line.product_id: f"{_name(line)} is no longer available."}) from exc
        except Exception as exc:
            logger.exception(
                "Checkout failed for %s after %d of %d line(s)", cart.user_id, len(applied), len(items)
            )
            self._compensate(applied)
            raise CheckoutFailedError(FAILURE_MESSAGE) from exc

        cart.clear_cart()
        self._notice = CheckoutNotice(SUCCESS_MESSAGE, self.clock() + self.notice_seconds, self.clock)
        logger.info("Checkout committed for %s: %d line(s)", cart.user_id, len(applied))
        return CheckoutReceipt(
            committed={item.product_id: item.quantity for item in applied},
            notice=self._notice,
        )

    def _compensate(self, applied: List[CartLineItem]) -> None:
        for item in reversed(applied):
            try:
                self.stock.restore_stock(item.product_id, item.quantity)
            except Exception:
                logger.error(
                    "Could not restore %d unit(s) of %s after failed checkout",
                    item.quantity, item.product_id, exc_info=True,
                )
