"""
# `storefront/routers/auth.py` — Accounts

Firebase Authentication holds the credentials; this router only creates accounts through the
Admin SDK, proxies password sign-in, and keeps the role in `users/{uid}`.

### `POST /auth/signup`
Form: `email`, `password` (≥ 6), `role` (`Customer` | `Vendor`).
Creates the Firebase user and writes `{email, role, created_at}`. No tokens are returned;
the client signs in afterwards.

### `POST /auth/login`
Form: `email`, `password`. Proxies `accounts:signInWithPassword` and returns the tokens,
the stored role, and which dashboard (`customer` / `vendor`) the client should open.

### `GET /auth/me`
Current profile.

### `POST /auth/logout`
Revokes the user's refresh tokens; ID tokens are rejected from then on.
"""
import logging
from typing import Any, Dict

import httpx
from fastapi import APIRouter, Depends, Form, HTTPException, status
from firebase_admin import auth as firebase_auth
from pydantic import EmailStr

from storefront.config import get_firebase_app, settings
from storefront.core.auth import get_principal
from storefront.dependencies import get_user_repository
from storefront.repositories.users import UserRepository
from storefront.schemas.principal import Principal, Role
from storefront.schemas.user import LoginResponse, SignupResponse, UserProfile, dashboard_for

logger = logging.getLogger("storefront.auth")

router = APIRouter(prefix="/auth", tags=["Auth"])


async def _firebase_sign_in(email: str, password: str) -> Dict[str, Any]:
    """Password sign-in against the Identity Toolkit REST API."""
    if not settings.firebase_web_api_key:
        raise HTTPException(status_code=500, detail="Server misconfigured: missing FIREBASE_WEB_API_KEY")
    payload = {"email": email, "password": password, "returnSecureToken": True}
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.post(settings.signin_endpoint, json=payload)
    except httpx.HTTPError as e:
        logger.exception("Sign-in request failed")
        raise HTTPException(status_code=502, detail=f"Sign-in service error: {e}")

    data = resp.json()
    if resp.status_code != 200:
        message = (data.get("error") or {}).get("message", "Invalid credentials")
        logger.warning("Firebase login failed: %s", message)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Failed to login. Please check your credentials.")
    return data


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    email: EmailStr = Form(..., description="Email"),
    password: str = Form(..., min_length=6, description="Password (min 6 characters)"),
    role: Role = Form("Customer", description="Customer | Vendor"),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        record = firebase_auth.create_user(email=email, password=password, app=get_firebase_app())
    except firebase_auth.EmailAlreadyExistsError:
        raise HTTPException(status_code=400, detail="An account with this email already exists.")
    except Exception as exc:
        logger.warning("Firebase user creation failed for %s: %s", email, exc)
        raise HTTPException(status_code=400, detail="Failed to create an account. Please try again.")

    profile = users.create(record.uid, email, role)
    logger.info("Created %s account %s", role, record.uid)
    return SignupResponse(user_id=record.uid, user=profile)


@router.post("/login", response_model=LoginResponse)
async def login(
    email: EmailStr = Form(..., description="Email"),
    password: str = Form(..., min_length=6, description="Password"),
    users: UserRepository = Depends(get_user_repository),
):
    data = await _firebase_sign_in(email, password)
    uid = data["localId"]
    profile = users.get(uid)
    role = profile.role if profile else "Customer"
    return LoginResponse(
        id_token=data["idToken"],
        refresh_token=data["refreshToken"],
        expires_in=int(data["expiresIn"]),
        user_id=uid,
        role=role,
        dashboard=dashboard_for(role),
    )


@router.get("/me", response_model=UserProfile)
def me(principal: Principal = Depends(get_principal)):
    return UserProfile(id=principal.uid, email=principal.email, role=principal.role)


@router.post("/logout")
def logout(principal: Principal = Depends(get_principal)):
    """
    Revokes refresh tokens on every device.
    The client should also call signOut() in the Firebase SDK.
    """
    try:
        firebase_auth.revoke_refresh_tokens(principal.uid, app=get_firebase_app())
    except firebase_auth.UserNotFoundError:
        logger.info("Logout for deleted user %s", principal.uid)
    return {"detail": "Logged out"}
