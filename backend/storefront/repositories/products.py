"""
storefront/repositories/products.py
Firestore access for the `products` collection: catalog reads, vendor CRUD and stock counters.

Stock changes made by checkout go through `decrement_stock`, which reads and writes the
counter inside one Firestore transaction and refuses when fewer units remain than requested.
Contended transactions are retried by the Firestore client.
"""
import logging
from typing import Dict, Iterable, List, Optional

from firebase_admin import firestore
from google.cloud import firestore as gcf
from google.cloud.firestore_v1 import FieldFilter

from storefront.config import collection_name, get_db, settings
from storefront.schemas.product import ProductIn, ProductOut

logger = logging.getLogger("storefront.products")


class ProductNotFoundError(LookupError):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InsufficientStockError(Exception):
    def __init__(self, product_id: str, available: int, requested: int):
        super().__init__(f"Product {product_id}: {available} in stock, {requested} requested")
        self.product_id = product_id
        self.available = available
        self.requested = requested


def _take_stock(transaction, doc_ref, quantity: int, timeout: Optional[float]) -> int:
    snap = doc_ref.get(transaction=transaction, timeout=timeout)
    if not snap.exists:
        raise ProductNotFoundError(doc_ref.id)
    current = int((snap.to_dict() or {}).get("stock", 0) or 0)
    if current < quantity:
        raise InsufficientStockError(doc_ref.id, current, quantity)
    remaining = current - quantity
    transaction.update(doc_ref, {"stock": remaining})
    return remaining


@firestore.transactional
def _decrement_in_transaction(transaction, doc_ref, quantity: int, timeout: Optional[float]) -> int:
    return _take_stock(transaction, doc_ref, quantity, timeout)


class ProductRepository:
    def __init__(self, db=None, timeout: Optional[float] = None):
        self._db = db
        self.timeout = timeout if timeout is not None else settings.checkout_timeout_seconds

    @property
    def db(self):
        return self._db if self._db is not None else get_db()

    @property
    def collection(self):
        return self.db.collection(collection_name("products"))

    # ---------- catalog ----------
    def list_products(self) -> List[ProductOut]:
        q = self.collection
        try:
            q = q.order_by("created_at", direction=gcf.Query.DESCENDING)
        except Exception:
            logger.debug("created_at ordering unavailable; listing unordered")
        return [ProductOut.from_doc(d.id, d.to_dict() or {}) for d in q.stream()]

    def list_by_vendor(self, vendor_id: str) -> List[ProductOut]:
        q = self.collection.where(filter=FieldFilter("vendor_id", "==", vendor_id))
        return [ProductOut.from_doc(d.id, d.to_dict() or {}) for d in q.stream()]

    def get(self, product_id: str) -> Optional[ProductOut]:
        snap = self.collection.document(product_id).get()
        if not snap.exists:
            return None
        return ProductOut.from_doc(snap.id, snap.to_dict() or {})

    def get_many(self, product_ids: Iterable[str]) -> Dict[str, ProductOut]:
        refs = [self.collection.document(pid) for pid in dict.fromkeys(product_ids)]
        if not refs:
            return {}
        out: Dict[str, ProductOut] = {}
        for snap in self.db.get_all(refs):
            if snap.exists:
                out[snap.id] = ProductOut.from_doc(snap.id, snap.to_dict() or {})
        return out

    # ---------- vendor CRUD ----------
    def create(self, vendor_id: str, product_in: ProductIn) -> ProductOut:
        doc_ref = self.collection.document()
        data = product_in.model_dump()
        data.update(
            id=doc_ref.id,
            vendor_id=vendor_id,
            created_at=firestore.SERVER_TIMESTAMP,
        )
        doc_ref.set(data)
        logger.info("Vendor %s created product %s", vendor_id, doc_ref.id)
        return ProductOut.from_doc(doc_ref.id, data)

    def update(self, product_id: str, product_in: ProductIn) -> ProductOut:
        doc_ref = self.collection.document(product_id)
        if not doc_ref.get().exists:
            raise ProductNotFoundError(product_id)
        doc_ref.update(product_in.model_dump())
        return ProductOut.from_doc(product_id, doc_ref.get().to_dict() or {})

    def delete(self, product_id: str) -> None:
        self.collection.document(product_id).delete()
        logger.info("Deleted product %s", product_id)

    # ---------- stock ----------
    def get_stock(self, product_id: str) -> int:
        snap = self.collection.document(product_id).get(timeout=self.timeout)
        if not snap.exists:
            raise ProductNotFoundError(product_id)
        return int((snap.to_dict() or {}).get("stock", 0) or 0)

    def set_stock(self, product_id: str, stock: int) -> None:
        self.collection.document(product_id).update({"stock": max(0, int(stock))}, timeout=self.timeout)

    def decrement_stock(self, product_id: str, quantity: int) -> int:
        """Take `quantity` units atomically; returns the remaining stock."""
        doc_ref = self.collection.document(product_id)
        return _decrement_in_transaction(self.db.transaction(), doc_ref, int(quantity), self.timeout)

    def restore_stock(self, product_id: str, quantity: int) -> None:
        self.collection.document(product_id).update({"stock": gcf.Increment(int(quantity))}, timeout=self.timeout)
