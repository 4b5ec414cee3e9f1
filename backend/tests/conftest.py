"""Shared pytest fixtures: in-memory stand-ins for Firestore-backed repositories."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import NotFound
from google.cloud.firestore_v1.transforms import Increment

from storefront.core.auth import get_principal
from storefront.dependencies import get_cart_store, get_product_repository, get_user_repository
from storefront.main import app
from storefront.repositories.cart_state import CartStore, InMemoryKeyValueStore
from storefront.repositories.products import InsufficientStockError, ProductNotFoundError
from storefront.schemas.principal import Principal
from storefront.schemas.product import ProductIn, ProductOut
from storefront.schemas.user import UserProfile


def make_product(product_id: str, **overrides: Any) -> Dict[str, Any]:
    doc = {
        "id": product_id,
        "title": f"Product {product_id}",
        "category": "Electronics",
        "brand": "Acme",
        "price": 250.0,
        "stock": 10,
        "description": "A product",
        "image_url": "https://img.example/p.png",
        "vendor_id": "vendor-1",
    }
    doc.update(overrides)
    return doc


@dataclass
class FakeProductRepository:
    docs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    fail_on: Set[str] = field(default_factory=set)
    decrements: List[tuple] = field(default_factory=list)
    restores: List[tuple] = field(default_factory=list)
    _next_id: int = 0

    def add(self, product_id: str, **overrides: Any) -> Dict[str, Any]:
        self.docs[product_id] = make_product(product_id, **overrides)
        return self.docs[product_id]

    def list_products(self) -> List[ProductOut]:
        return [ProductOut.from_doc(pid, doc) for pid, doc in self.docs.items()]

    def list_by_vendor(self, vendor_id: str) -> List[ProductOut]:
        return [p for p in self.list_products() if p.vendor_id == vendor_id]

    def get(self, product_id: str) -> Optional[ProductOut]:
        doc = self.docs.get(product_id)
        return ProductOut.from_doc(product_id, doc) if doc else None

    def get_many(self, product_ids) -> Dict[str, ProductOut]:
        return {pid: self.get(pid) for pid in product_ids if pid in self.docs}

    def create(self, vendor_id: str, product_in: ProductIn) -> ProductOut:
        self._next_id += 1
        product_id = f"new-{self._next_id}"
        self.docs[product_id] = {**product_in.model_dump(), "id": product_id, "vendor_id": vendor_id}
        return self.get(product_id)

    def update(self, product_id: str, product_in: ProductIn) -> ProductOut:
        if product_id not in self.docs:
            raise ProductNotFoundError(product_id)
        self.docs[product_id].update(product_in.model_dump())
        return self.get(product_id)

    def delete(self, product_id: str) -> None:
        self.docs.pop(product_id, None)

    def get_stock(self, product_id: str) -> int:
        if product_id not in self.docs:
            raise ProductNotFoundError(product_id)
        return int(self.docs[product_id]["stock"])

    def set_stock(self, product_id: str, stock: int) -> None:
        self.docs[product_id]["stock"] = max(0, int(stock))

    def decrement_stock(self, product_id: str, quantity: int) -> int:
        if product_id in self.fail_on:
            raise RuntimeError("deadline exceeded")
        current = self.get_stock(product_id)
        if current < quantity:
            raise InsufficientStockError(product_id, current, quantity)
        self.docs[product_id]["stock"] = current - quantity
        self.decrements.append((product_id, quantity))
        return current - quantity

    def restore_stock(self, product_id: str, quantity: int) -> None:
        self.docs[product_id]["stock"] += quantity
        self.restores.append((product_id, quantity))


@dataclass
class FakeUserRepository:
    profiles: Dict[str, UserProfile] = field(default_factory=dict)

    def get(self, uid: str) -> Optional[UserProfile]:
        return self.profiles.get(uid)

    def create(self, uid: str, email: str, role: str) -> UserProfile:
        self.profiles[uid] = UserProfile(id=uid, email=email, role=role)
        return self.profiles[uid]

    def set_role(self, uid: str, role: str) -> None:
        self.profiles[uid] = self.profiles[uid].model_copy(update={"role": role})


@pytest.fixture()
def products() -> FakeProductRepository:
    repo = FakeProductRepository()
    repo.add("p1", title="Wireless Mouse", price=499.0, stock=10, category="Electronics")
    repo.add("p2", title="Cotton T-Shirt", price=299.0, stock=3, category="Clothing", brand="Loom")
    return repo


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def cart_store(kv) -> CartStore:
    return CartStore(kv)


@pytest.fixture()
def users() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture()
def principal() -> Dict[str, Any]:
    """Mutable identity for API tests; change `uid`/`role` to switch users."""
    return {"uid": "alice", "role": "Customer", "email": "alice@example.com"}


@pytest.fixture()
def client(products, cart_store, users, principal):
    app.dependency_overrides[get_product_repository] = lambda: products
    app.dependency_overrides[get_cart_store] = lambda: cart_store
    app.dependency_overrides[get_user_repository] = lambda: users
    app.dependency_overrides[get_principal] = lambda: Principal(**principal)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# --------- Firestore stand-in --------- #

@dataclass
class FakeSnapshot:
    id: str
    data: Optional[Dict[str, Any]]

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self):
        return dict(self.data) if self.data is not None else None


@dataclass
class FakeDocument:
    db: "FakeFirestore"
    docs: Dict[str, Dict[str, Any]]
    id: str

    def get(self, transaction=None, timeout=None):
        self.db.reads.append((self.id, transaction, timeout))
        return FakeSnapshot(self.id, self.docs.get(self.id))

    def set(self, data, merge=False):
        base = self.docs.get(self.id, {}) if merge else {}
        self.docs[self.id] = {**base, **data}

    def update(self, data, timeout=None):
        if self.id not in self.docs:
            raise NotFound(f"No document to update: {self.id}")
        self.db.updates.append((self.id, timeout))
        doc = self.docs[self.id]
        for name, value in data.items():
            doc[name] = doc.get(name, 0) + value.value if isinstance(value, Increment) else value

    def delete(self):
        self.docs.pop(self.id, None)


@dataclass
class FakeCollection:
    db: "FakeFirestore"
    docs: Dict[str, Dict[str, Any]]

    def document(self, doc_id: Optional[str] = None) -> FakeDocument:
        if doc_id is None:
            doc_id = f"auto-{len(self.docs) + 1}"
        return FakeDocument(self.db, self.docs, doc_id)


@dataclass
class FakeTransaction:
    writes: List[tuple] = field(default_factory=list)

    def set(self, doc_ref, data):
        self.writes.append(("set", doc_ref.id))
        doc_ref.set(data)

    def update(self, doc_ref, data):
        self.writes.append(("update", doc_ref.id))
        doc_ref.update(data)

    def delete(self, doc_ref):
        self.writes.append(("delete", doc_ref.id))
        doc_ref.delete()


@dataclass
class FakeFirestore:
    collections: Dict[str, Dict[str, Dict[str, Any]]] = field(default_factory=dict)
    transactions: List[FakeTransaction] = field(default_factory=list)
    reads: List[tuple] = field(default_factory=list)
    updates: List[tuple] = field(default_factory=list)

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, self.collections.setdefault(name, {}))

    def transaction(self) -> FakeTransaction:
        self.transactions.append(FakeTransaction())
        return self.transactions[-1]

    def get_all(self, refs):
        return [ref.get() for ref in refs]


@pytest.fixture()
def firestore_db() -> FakeFirestore:
    return FakeFirestore()
