"""
storefront/core/security.py
Role guards built on top of `get_principal`.
"""
from fastapi import Depends, HTTPException, status

from storefront.core.auth import get_principal
from storefront.schemas.principal import Principal


def require_vendor(principal: Principal = Depends(get_principal)) -> Principal:
    """Only vendor accounts may use the vendor console."""
    if principal.role != "Vendor":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vendor access required",
        )
    return principal
