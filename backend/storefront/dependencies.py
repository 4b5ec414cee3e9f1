"""
storefront/dependencies.py
FastAPI providers for repositories and stores. Tests swap these through `app.dependency_overrides`.
"""
from functools import lru_cache

from storefront.config import settings
from storefront.repositories.cart_state import (
    CartStore,
    FirestoreKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from storefront.repositories.products import ProductRepository
from storefront.repositories.users import UserRepository


@lru_cache(maxsize=1)
def _cart_kv() -> KeyValueStore:
    if settings.cart_store_backend == "file":
        return JsonFileKeyValueStore(settings.cart_store_path)
    if settings.cart_store_backend == "memory":
        return InMemoryKeyValueStore()
    return FirestoreKeyValueStore()


def get_cart_store() -> CartStore:
    return CartStore(_cart_kv())


def get_product_repository() -> ProductRepository:
    return ProductRepository()


def get_user_repository() -> UserRepository:
    return UserRepository()
