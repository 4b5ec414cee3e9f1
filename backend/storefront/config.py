"""
storefront/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and lazily initializes the Firebase Admin SDK (Firestore client) from the provided credentials.
Other modules import `settings` and call `get_db()` when they need Firestore.
"""
from functools import lru_cache
from typing import Literal, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    firebase_cred_file: str = Field('firebase_service_account.json')
    firebase_project_id: str = Field('')

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_client_id: Optional[str] = None
    firebase_auth_uri: Optional[str] = None
    firebase_token_uri: Optional[str] = None
    firebase_auth_provider_x509_cert_url: Optional[str] = None
    firebase_client_x509_cert_url: Optional[str] = None

    firebase_web_api_key: str = Field('', description="Web API key used by the login proxy")
    firebase_collection_prefix: str = Field('', description="Prefix for every Firestore collection name")

    debug: bool = False
    allowed_origins: str = Field('*')  # Comma-separated list or '*' for all

    cart_store_backend: Literal["firestore", "file", "memory"] = "firestore"
    cart_store_path: str = "cart_state.json"
    checkout_notice_seconds: float = Field(3.5, gt=0)
    checkout_timeout_seconds: float = Field(10.0, gt=0)

    @field_validator("firebase_web_api_key")
    @classmethod
    def _check_web_api_key(cls, v: str) -> str:
        v = (v or "").strip()
        if v and not v.startswith("AIza"):
            raise ValueError("FIREBASE_WEB_API_KEY must be a valid Firebase Web API Key starting with 'AIza'")
        return v

    @property
    def signin_endpoint(self) -> str:
        return (
            "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
            f"?key={self.firebase_web_api_key}"
        )


# Load settings from environment (.env file, etc.)
settings = Settings()


def collection_name(name: str) -> str:
    """Prefix-aware collection name (FIREBASE_COLLECTION_PREFIX)."""
    prefix = settings.firebase_collection_prefix.strip()
    return f"{prefix}{name}" if prefix else name


def _service_account_credentials() -> credentials.Base:
    # Cloud Run passes the service account through the environment
    if all([
        settings.firebase_private_key_id,
        settings.firebase_private_key,
        settings.firebase_client_email,
        settings.firebase_client_id,
        settings.firebase_auth_uri,
        settings.firebase_token_uri,
        settings.firebase_auth_provider_x509_cert_url,
        settings.firebase_client_x509_cert_url,
    ]):
        return credentials.Certificate({
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "client_email": settings.firebase_client_email,
            "client_id": settings.firebase_client_id,
            "auth_uri": settings.firebase_auth_uri,
            "token_uri": settings.firebase_token_uri,
            "auth_provider_x509_cert_url": settings.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": settings.firebase_client_x509_cert_url,
        })
    # Service account file (local development)
    return credentials.Certificate(settings.firebase_cred_file)


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK once and return the default app."""
    try:
        return firebase_admin.initialize_app(
            _service_account_credentials(),
            {'projectId': settings.firebase_project_id} if settings.firebase_project_id else None,
        )
    except ValueError as e:
        if "already exists" in str(e):
            # Firebase app already initialized, get the default app
            return firebase_admin.get_app()
        raise


@lru_cache(maxsize=1)
def get_db():
    """Firestore database client bound to the default Firebase app."""
    return firestore.client(app=get_firebase_app())
