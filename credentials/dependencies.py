"""
FastAPI dependencies for the credentials application.

Provides service initialization at startup and dependency getters for
route handlers.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Header

from common.auth import JWTTokenCodec, PasswordHasher
from common.config import Settings
from common.kv import CloudflareKV, InMemoryKV, KVStore
from common.utils.exceptions import (
    APIException,
    CredentialError,
    UnauthorizedException,
)
from credentials.models import UserRecord
from credentials.service import CredentialService
from credentials.user_store import UserRecordStore

logger = logging.getLogger(__name__)

_kv_store: Optional[KVStore] = None
_credential_service: Optional[CredentialService] = None


# ─────────────────────────────────────────────────────────────────
# Initialization functions
# ─────────────────────────────────────────────────────────────────

def create_kv_store(settings: Settings) -> KVStore:
    """Build the KV backend selected by ``KV_BACKEND``."""
    if settings.KV_BACKEND == "memory":
        logger.warning("Using in-memory KV store; data will not persist")
        return InMemoryKV()
    logger.info(f"Using Cloudflare KV namespace {settings.CLOUDFLARE_NAMESPACE_ID}")
    return CloudflareKV.from_settings(settings)


def init_services(settings: Settings, kv_store: Optional[KVStore] = None) -> None:
    """
    Initialize all services at application startup.

    Args:
        settings: Validated settings bundle
        kv_store: Pre-built KV backend; built from settings when omitted
    """
    global _kv_store, _credential_service

    _kv_store = kv_store or create_kv_store(settings)
    _credential_service = CredentialService(
        store=UserRecordStore(_kv_store),
        hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
        codec=JWTTokenCodec(secret=settings.JWT_SECRET),
        token_lifetime=settings.token_lifetime,
    )


async def shutdown_services() -> None:
    """Close the KV backend and drop service singletons."""
    global _kv_store, _credential_service

    if _kv_store is not None:
        await _kv_store.close()
    _kv_store = None
    _credential_service = None


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_credential_service() -> CredentialService:
    """Get credential service instance."""
    if _credential_service is None:
        raise RuntimeError("Credential services not initialized.")
    return _credential_service


def extract_bearer_token(authorization: Optional[str], scheme: str = "Bearer") -> str:
    """
    Pull the token out of an ``Authorization`` header.

    Raises:
        UnauthorizedException: Header missing, wrong scheme, or empty token
    """
    if not authorization:
        raise UnauthorizedException("Missing authorization header")

    prefix = f"{scheme} "
    if not authorization.startswith(prefix):
        raise UnauthorizedException(
            f"Invalid authorization scheme. Expected: {scheme}",
            code="INVALID_AUTH_SCHEME",
        )

    token = authorization[len(prefix):].strip()
    if not token:
        raise UnauthorizedException("Token is empty", code="EMPTY_TOKEN")
    return token


async def require_user(
    service: Annotated[CredentialService, Depends(get_credential_service)],
    authorization: Optional[str] = Header(None),
) -> UserRecord:
    """Dependency that requires a valid bearer token and returns its live user."""
    token = extract_bearer_token(authorization)
    try:
        return await service.validate_token(token)
    except CredentialError as e:
        raise APIException.from_error(e)
