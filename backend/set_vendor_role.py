#!/usr/bin/env python3
"""
Marks an existing account as a Vendor in its `users/{uid}` profile.
"""
import sys

from firebase_admin import auth

from storefront.config import get_firebase_app
from storefront.repositories.users import UserRepository


def set_vendor_role(user_email: str) -> bool:
    """Looks the user up by email and sets role=Vendor."""
    try:
        app = get_firebase_app()
    except Exception as e:
        print(f"Firebase initialization failed: {e}")
        return False

    try:
        user = auth.get_user_by_email(user_email, app=app)
    except auth.UserNotFoundError:
        print(f"User not found: {user_email}")
        return False

    UserRepository().set_role(user.uid, "Vendor")
    print(f"Vendor role set for {user.uid} - {user.email}")
    return True


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python set_vendor_role.py <user_email>")
        sys.exit(1)

    if not set_vendor_role(sys.argv[1]):
        sys.exit(1)
    print("The user will see the vendor console after signing in again.")
