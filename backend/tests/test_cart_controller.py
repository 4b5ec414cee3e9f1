import json
from decimal import Decimal

import pytest

from storefront.core.identity import SessionIdentity
from storefront.repositories.cart_state import CartStore
from storefront.schemas.product import ProductOut
from storefront.services.cart_controller import CartController

MOUSE = ProductOut(id="p1", title="Wireless Mouse", brand="Acme", price=499.0, stock=10)
SHIRT = ProductOut(id="p2", title="Cotton T-Shirt", brand="Loom", price=299.0, stock=3)


@pytest.fixture()
def identity():
    return SessionIdentity()


@pytest.fixture()
def cart(cart_store, identity):
    return CartController(cart_store, identity)


def test_no_identity_keeps_cart_in_memory_only(cart, kv):
    cart.add_to_cart(MOUSE)
    cart.increment("p1")

    assert cart.items[0].quantity == 2
    assert kv.data == {}


def test_every_change_persists_full_cart_under_user_key(cart, identity, kv):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)
    cart.add_to_cart(SHIRT)
    cart.increment("p2")

    stored = json.loads(kv.data["cart_alice"])
    assert [line["product_id"] for line in stored] == ["p1", "p2"]
    assert [line["quantity"] for line in stored] == [1, 2]


def test_clear_deletes_the_record_rather_than_storing_empty(cart, identity, kv):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)
    assert "cart_alice" in kv.data

    cart.clear_cart()

    assert cart.items == ()
    assert "cart_alice" not in kv.data


def test_removing_last_line_deletes_the_record(cart, identity, kv):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)

    cart.remove_from_cart("p1")

    assert "cart_alice" not in kv.data


def test_signing_in_loads_that_users_stored_cart(cart_store, identity):
    CartController(cart_store, SessionIdentity("alice")).add_to_cart(MOUSE)

    cart = CartController(cart_store, identity)
    assert cart.items == ()

    identity.sign_in("alice")
    assert [line.product_id for line in cart.items] == ["p1"]


def test_switching_users_never_merges_carts(cart, identity, kv):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)
    cart.add_to_cart(MOUSE)

    identity.sign_in("bob")
    assert cart.items == ()
    cart.add_to_cart(SHIRT)

    alice = json.loads(kv.data["cart_alice"])
    bob = json.loads(kv.data["cart_bob"])
    assert [(line["product_id"], line["quantity"]) for line in alice] == [("p1", 2)]
    assert [(line["product_id"], line["quantity"]) for line in bob] == [("p2", 1)]

    identity.sign_in("alice")
    assert [(line.product_id, line.quantity) for line in cart.items] == [("p1", 2)]


def test_signing_out_empties_memory_but_keeps_stored_cart(cart, identity, kv):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)

    identity.sign_out()

    assert cart.user_id is None
    assert cart.items == ()
    assert "cart_alice" in kv.data


def test_anonymous_cart_is_not_carried_into_a_signed_in_cart(cart, identity, kv):
    cart.add_to_cart(SHIRT)

    identity.sign_in("alice")

    assert cart.items == ()
    assert kv.data == {}


def test_set_quantity_is_clamped_to_one(cart, identity):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)

    cart.set_quantity("p1", 0)
    assert cart.items[0].quantity == 1

    cart.set_quantity("p1", 6)
    assert cart.items[0].quantity == 6


def test_totals(cart):
    cart.add_to_cart(MOUSE)
    cart.add_to_cart(SHIRT)
    cart.set_quantity("p2", 3)

    assert cart.total_quantity == 4
    assert cart.total_price == Decimal("499.0") + Decimal("299.0") * 3


def test_malformed_record_is_treated_as_empty(kv, cart, identity):
    kv.data["cart_alice"] = "{not json"

    identity.sign_in("alice")

    assert cart.items == ()


def test_storage_failures_are_not_raised(identity):
    class BrokenStore:
        def get(self, key):
            raise ConnectionError("store down")

        def set(self, key, raw):
            raise ConnectionError("store down")

        def delete(self, key):
            raise ConnectionError("store down")

        def update(self, key, change):
            raise ConnectionError("store down")

    cart = CartController(CartStore(BrokenStore()), identity)
    identity.sign_in("alice")

    cart.add_to_cart(MOUSE)
    cart.clear_cart()

    assert cart.items == ()


def test_detach_stops_following_identity(cart, identity):
    identity.sign_in("alice")
    cart.detach()

    identity.sign_in("bob")

    assert cart.user_id == "alice"


def test_two_sessions_of_one_user_do_not_overwrite_each_other(cart_store, kv):
    phone = CartController(cart_store, SessionIdentity("alice"))
    laptop = CartController(cart_store, SessionIdentity("alice"))

    phone.add_to_cart(MOUSE)
    laptop.add_to_cart(SHIRT)

    stored = json.loads(kv.data["cart_alice"])
    assert [line["product_id"] for line in stored] == ["p1", "p2"]
    assert [line.product_id for line in laptop.items] == ["p1", "p2"]


def test_unpriced_product_is_not_added_and_stored_cart_survives(cart, identity, cart_store):
    identity.sign_in("alice")
    cart.add_to_cart(MOUSE)

    cart.add_to_cart(ProductOut.from_doc("p9", {"title": "Draft item", "stock": 5}))

    assert [line.product_id for line in cart_store.load("alice")] == ["p1"]
