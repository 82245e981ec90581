"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from backend.auth import AuthClient, FirebaseAuthClient, InMemoryAuthClient
from backend.config import get_settings
from backend.db import DbClient, FirestoreDbClient, InMemoryDbClient, SqlDbClient
from backend.mercado_pago import MercadoPagoClient
from backend.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from backend.tusfacturas import TusFacturasClient

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_auth_client: AuthClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton document store client.

    Firestore when a Firebase project is configured, SQL when a database URL
    is, in-memory otherwise.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
    elif settings.firebase_project_id:
        _db_client = FirestoreDbClient(settings.firebase_project_id)
    elif settings.database_url:
        _db_client = SqlDbClient(settings.database_url)
    else:
        _db_client = InMemoryDbClient()
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    return _storage_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.firebase_project_id:
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = FirebaseAuthClient(settings.firebase_project_id)
    return _auth_client


def get_localidades_path() -> str:
    return get_settings().localidades_path


def get_tusfacturas_client() -> Optional[TusFacturasClient]:
    """None when the TusFacturas credentials are not configured."""
    settings = get_settings()
    if not (
        settings.tusfacturas_api_key
        and settings.tusfacturas_api_token
        and settings.tusfacturas_user_token
    ):
        return None
    return TusFacturasClient(
        api_key=settings.tusfacturas_api_key,
        api_token=settings.tusfacturas_api_token,
        user_token=settings.tusfacturas_user_token,
    )


def get_mercado_pago_client() -> Optional[MercadoPagoClient]:
    """None when no access token is configured."""
    settings = get_settings()
    if not settings.mp_access_token:
        return None
    return MercadoPagoClient(access_token=settings.mp_access_token)
