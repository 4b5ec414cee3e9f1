"""
storefront/repositories/cart_state.py
Per-user cart persistence on top of a small key-value interface.

Backends (`CART_STORE_BACKEND`):
- `firestore`: one document per key in the `cart_state` collection, raw JSON under `payload`
- `file`: a single local JSON object (`CART_STORE_PATH`)
- `memory`: process-local dict

Keys are `cart_<uid>`. `update` is a read-modify-write that the backend runs atomically
(a Firestore transaction, or a lock for the local backends), so two requests from the same
user cannot overwrite each other's change. Reads and writes are best-effort: failures are
logged, and lines that no longer validate are dropped one by one.
"""
import json
import logging
import os
import tempfile
import threading
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from firebase_admin import firestore
from google.cloud.firestore_v1 import SERVER_TIMESTAMP
from pydantic import TypeAdapter, ValidationError

from storefront.config import collection_name, get_db
from storefront.schemas.cart import CartLineItem

logger = logging.getLogger("storefront.cart")

_LINES = TypeAdapter(List[CartLineItem])

Lines = Tuple[CartLineItem, ...]
RawChange = Callable[[Optional[str]], Optional[str]]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, raw: str) -> None: ...
    def delete(self, key: str) -> None: ...
    def update(self, key: str, change: RawChange) -> Optional[str]: ...


def _swap_payload(transaction, doc_ref, change: RawChange) -> Optional[str]:
    snap = doc_ref.get(transaction=transaction)
    raw = (snap.to_dict() or {}).get("payload") if snap.exists else None
    new_raw = change(raw)
    if new_raw is None:
        if snap.exists:
            transaction.delete(doc_ref)
    else:
        transaction.set(doc_ref, {"payload": new_raw, "updated_at": SERVER_TIMESTAMP})
    return new_raw


@firestore.transactional
def _update_in_transaction(transaction, doc_ref, change: RawChange) -> Optional[str]:
    # Retried by the client on contention, so `change` must not have side effects.
    return _swap_payload(transaction, doc_ref, change)


class FirestoreKeyValueStore:
    def __init__(self, db=None, collection: str = "cart_state"):
        self._db = db
        self._collection = collection

    @property
    def db(self):
        return self._db if self._db is not None else get_db()

    def _doc(self, key: str):
        return self.db.collection(collection_name(self._collection)).document(key)

    def get(self, key: str) -> Optional[str]:
        snap = self._doc(key).get()
        if not snap.exists:
            return None
        return (snap.to_dict() or {}).get("payload")

    def set(self, key: str, raw: str) -> None:
        self._doc(key).set({"payload": raw, "updated_at": SERVER_TIMESTAMP})

    def delete(self, key: str) -> None:
        self._doc(key).delete()

    def update(self, key: str, change: RawChange) -> Optional[str]:
        return _update_in_transaction(self.db.transaction(), self._doc(key), change)


class JsonFileKeyValueStore:
    """All keys in one JSON object on local disk, rewritten atomically."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        fd, tmp = tempfile.mkstemp(dir=folder, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, raw: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = raw
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if data.pop(key, None) is not None:
                self._write_all(data)

    def update(self, key: str, change: RawChange) -> Optional[str]:
        # The lock is per process; run a single worker with this backend.
        with self._lock:
            data = self._read_all()
            current = data.get(key)
            new_raw = change(current if isinstance(current, str) else None)
            if new_raw is None:
                if data.pop(key, None) is not None:
                    self._write_all(data)
            else:
                data[key] = new_raw
                self._write_all(data)
        return new_raw


class InMemoryKeyValueStore:
    def __init__(self):
        self.data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, raw: str) -> None:
        self.data[key] = raw

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def update(self, key: str, change: RawChange) -> Optional[str]:
        with self._lock:
            new_raw = change(self.data.get(key))
            if new_raw is None:
                self.data.pop(key, None)
            else:
                self.data[key] = new_raw
        return new_raw


class CartStore:
    """Loads and saves whole carts keyed by user id."""

    KEY_PREFIX = "cart_"

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @classmethod
    def key_for(cls, user_id: str) -> str:
        return f"{cls.KEY_PREFIX}{user_id}"

    def _parse(self, key: str, raw: Optional[str]) -> Lines:
        """Valid, de-duplicated lines of a stored record; invalid lines are skipped."""
        if not raw:
            return ()
        try:
            entries = json.loads(raw)
        except ValueError as exc:
            logger.warning("Discarding unreadable cart record %s: %s", key, exc)
            return ()
        if not isinstance(entries, list):
            logger.warning("Discarding cart record %s: expected a list of lines", key)
            return ()

        seen = set()
        lines: List[CartLineItem] = []
        for entry in entries:
            try:
                line = CartLineItem.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Dropping invalid line from %s: %s", key, exc.errors()[0].get("msg"))
                continue
            if line.product_id in seen:
                continue
            seen.add(line.product_id)
            lines.append(line)
        return tuple(lines)

    @staticmethod
    def _dump(items: Lines) -> Optional[str]:
        # No record for an empty cart.
        return _LINES.dump_json(list(items)).decode("utf-8") if items else None

    def load(self, user_id: str) -> Lines:
        key = self.key_for(user_id)
        try:
            raw = self.kv.get(key)
        except Exception:
            logger.warning("Cart read failed for %s; starting empty", key, exc_info=True)
            return ()
        return self._parse(key, raw)

    def update(self, user_id: str, change: Callable[[Lines], Lines], current: Lines = ()) -> Lines:
        """
        Apply `change` to the stored cart and persist the result in one atomic step.
        If the store is unreachable, `change` is applied to `current` and nothing is written.
        """
        key = self.key_for(user_id)
        updated: Lines = ()

        def apply(raw: Optional[str]) -> Optional[str]:
            nonlocal updated
            updated = tuple(change(self._parse(key, raw)))
            return self._dump(updated)

        try:
            self.kv.update(key, apply)
        except Exception:
            logger.warning("Cart update failed for %s; change kept in memory only", key, exc_info=True)
            return tuple(change(tuple(current)))
        return updated

    def save(self, user_id: str, items: Lines) -> None:
        """Write the full cart; an empty cart removes the record instead."""
        self.update(user_id, lambda _stored: tuple(items), items)

    def delete(self, user_id: str) -> None:
        key = self.key_for(user_id)
        try:
            self.kv.delete(key)
        except Exception:
            logger.warning("Cart delete failed for %s", key, exc_info=True)
