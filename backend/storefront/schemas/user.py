"""
storefront/schemas/user.py - Pydantic models for accounts.

Profiles live in the `users/{uid}` Firestore document:
| Field      | Type  | Notes |
|------------|-------|-------|
| email      | `str` | Sign-in email |
| role       | `str` | `Customer` or `Vendor` |
| created_at | timestamp | Server timestamp at signup |
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field

from storefront.schemas.principal import Role

Dashboard = Literal["customer", "vendor"]


def dashboard_for(role: Optional[str]) -> Dashboard:
    """Vendors land on the vendor console, everyone else on the catalog."""
    return "vendor" if role == "Vendor" else "customer"


class UserProfile(BaseModel):
    id: str = Field(..., description="User unique ID (UID from Firebase)")
    email: Optional[str] = Field(None, description="Email address of the user")
    role: Role = Field("Customer", description="Customer | Vendor")


class SignupResponse(BaseModel):
    user_id: str
    user: UserProfile


class LoginResponse(BaseModel):
    id_token: str
    refresh_token: str
    expires_in: int
    user_id: str
    role: Role
    dashboard: Dashboard
