# storefront/core/auth.py
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth as fb_auth

from storefront.config import get_firebase_app
from storefront.dependencies import get_user_repository
from storefront.repositories.users import UserRepository
from storefront.schemas.principal import Principal

logger = logging.getLogger("storefront.auth")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Reads the token from `Authorization: Bearer <id_token>`.
    Returns None when the header is missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_id_token(id_token: str) -> dict:
    """
    Verifies a Firebase ID token (revocation checked, so tokens die on logout).
    Invalid, revoked or expired tokens become 401.
    """
    try:
        return fb_auth.verify_id_token(id_token, check_revoked=True, app=get_firebase_app())
    except fb_auth.ExpiredIdTokenError:
        raise _unauthorized("Token expired")
    except fb_auth.RevokedIdTokenError:
        raise _unauthorized("Session revoked")
    except Exception as exc:
        logger.debug("ID token rejected: %s", exc)
        raise _unauthorized("Invalid authentication token")


def _token_to_principal(decoded: dict, users: UserRepository) -> Principal:
    """
    Builds the Principal from the token and the `users/{uid}` profile.
    Accounts without a profile are treated as customers.
    """
    uid = decoded.get("uid") or decoded.get("user_id")
    if not uid:
        raise _unauthorized("Token missing uid.")
    profile = users.get(uid)
    return Principal(
        uid=uid,
        role=profile.role if profile else "Customer",
        email=decoded.get("email") or (profile.email if profile else None),
    )

# --------- FastAPI Dependencies --------- #

async def get_principal(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
) -> Principal:
    """Token required."""
    token = _extract_bearer_token(request)
    if not token:
        raise _unauthorized("Missing Authorization header.")
    return _token_to_principal(_decode_id_token(token), users)
