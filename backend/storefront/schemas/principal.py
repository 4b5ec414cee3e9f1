"""
storefront/schemas/principal.py
Roles and the authenticated Principal model.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["Customer", "Vendor"]

class Principal(BaseModel):
    uid: str = Field(..., description="Firebase UID")
    role: Role = Field("Customer", description="Customer | Vendor")
    email: Optional[str] = Field(None, description="Email (if any)")
