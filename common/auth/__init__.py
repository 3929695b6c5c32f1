"""
Authentication module - Password hashing and JWT session tokens.
"""

from common.auth.password_hasher import PasswordHasher
from common.auth.jwt_auth import JWTTokenCodec, SessionClaims, TokenFailure

__all__ = ["PasswordHasher", "JWTTokenCodec", "SessionClaims", "TokenFailure"]
