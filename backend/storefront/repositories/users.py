from typing import Optional

from google.cloud import firestore as gcf

from storefront.config import collection_name, get_db
from storefront.schemas.user import UserProfile

COL = "users"


class UserRepository:
    def __init__(self, db=None):
        self._db = db

    def _doc(self, uid: str):
        db = self._db if self._db is not None else get_db()
        return db.collection(collection_name(COL)).document(uid)

    def get(self, uid: str) -> Optional[UserProfile]:
        snap = self._doc(uid).get()
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        role = data.get("role") if data.get("role") in ("Customer", "Vendor") else "Customer"
        return UserProfile(id=uid, email=data.get("email"), role=role)

    def create(self, uid: str, email: str, role: str) -> UserProfile:
        self._doc(uid).set({
            "email": email,
            "role": role,
            "created_at": gcf.SERVER_TIMESTAMP,
        })
        return UserProfile(id=uid, email=email, role=role)

    def set_role(self, uid: str, role: str) -> None:
        self._doc(uid).set({"role": role}, merge=True)
