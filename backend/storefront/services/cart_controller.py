"""
storefront/services/cart_controller.py
Owns the in-memory cart for one session and keeps it in sync with the signed-in user.

- No user bound: the cart is empty and nothing is read or written.
- A user binds: that user's stored cart is loaded (empty when none).
- The user changes: the new user's cart is loaded; the previous one is never merged in.
- Every change while bound is applied to the stored cart in one atomic update and written
  back whole (the record is deleted when the cart becomes empty). Two sessions of the same
  user therefore never overwrite each other's changes.
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Optional

from storefront.core.identity import IdentityProvider
from storefront.repositories.cart_state import CartStore
from storefront.services import cart_reducer as ops
from storefront.services.cart_reducer import Cart

logger = logging.getLogger("storefront.cart")


class CartController:
    def __init__(self, store: CartStore, identity: Optional[IdentityProvider] = None):
        self.store = store
        self._user_id: Optional[str] = None
        self._items: Cart = ()
        self._unsubscribe: Optional[Callable[[], None]] = None
        if identity is not None:
            self.attach(identity)

    # ---------- identity ----------
    def attach(self, identity: IdentityProvider) -> None:
        """Subscribe to an identity provider (replacing any previous subscription)."""
        self.detach()
        self._unsubscribe = identity.subscribe(self.bind_identity)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def bind_identity(self, user_id: Optional[str]) -> None:
        if not user_id:
            self._user_id = None
            self._items = ops.reduce(self._items, ops.Clear())
            return
        if user_id == self._user_id:
            return
        self._user_id = user_id
        self._items = ops.reduce(self._items, ops.Init(self.store.load(user_id)))
        logger.debug("Loaded cart for %s with %d line(s)", user_id, len(self._items))

    # ---------- snapshot ----------
    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def items(self) -> Cart:
        return self._items

    def get(self, product_id: str):
        return next((item for item in self._items if item.product_id == product_id), None)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_price(self) -> Decimal:
        return sum((item.line_total for item in self._items), Decimal("0"))

    # ---------- operations ----------
    def add_to_cart(self, product: Any) -> Cart:
        return self._dispatch(ops.Add(product))

    def remove_from_cart(self, product_id: str) -> Cart:
        return self._dispatch(ops.Remove(product_id))

    def increment(self, product_id: str) -> Cart:
        return self._dispatch(ops.Increment(product_id))

    def decrement(self, product_id: str) -> Cart:
        return self._dispatch(ops.Decrement(product_id))

    def set_quantity(self, product_id: str, quantity: int) -> Cart:
        return self._dispatch(ops.SetQuantity(product_id, max(1, int(quantity))))

    def clear_cart(self) -> Cart:
        return self._dispatch(ops.Clear())

    def _dispatch(self, op: Any) -> Cart:
        if self._user_id is None:
            self._items = ops.reduce(self._items, op)
        else:
            self._items = self.store.update(self._user_id, lambda items: ops.reduce(items, op), self._items)
        return self._items
