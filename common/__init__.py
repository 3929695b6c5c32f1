"""
Common library for reusable infrastructure components.

- auth: bcrypt password hashing, JWT session tokens
- kv: Pluggable key-value stores (Cloudflare Workers KV, in-memory)
- utils: Standard responses, credential error taxonomy
- config: Settings class
"""

from common.auth import PasswordHasher, JWTTokenCodec, SessionClaims
from common.kv import KVStore, KVError, CloudflareKV, InMemoryKV
from common.utils import (
    success_response,
    error_response,
    CredentialError,
    APIException,
)
from common.config import Settings

__all__ = [
    # Auth
    "PasswordHasher",
    "JWTTokenCodec",
    "SessionClaims",
    # KV
    "KVStore",
    "KVError",
    "CloudflareKV",
    "InMemoryKV",
    # Utils
    "success_response",
    "error_response",
    "CredentialError",
    "APIException",
    # Config
    "Settings",
]
