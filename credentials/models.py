"""
Pydantic models for user records and auth request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class UserRecord(BaseModel):
    """
    Persisted identity entity.

    Stored as JSON under ``user:email:<email>``; the field names are the
    on-store layout and must not change.
    """
    id: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_json_bytes(cls, data: bytes) -> "UserRecord":
        return cls.model_validate_json(data)


class UserInfo(BaseModel):
    """Public user information (no password hash)."""
    id: str
    email: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserInfo":
        return cls(id=record.id, email=record.email)


class LoginResult(BaseModel):
    """Token, its expiry, and the logged-in user."""
    token: str
    expires_at: datetime
    user: UserInfo


# ─────────────────────────────────────────────────────────────────
# Request schemas
# ─────────────────────────────────────────────────────────────────

class CredentialsRequest(BaseModel):
    """Request body for registration and login."""
    email: str = Field(default="", description="Case-sensitive email address")
    password: str = Field(default="", description="Plaintext password")


class ValidateTokenRequest(BaseModel):
    """Request body for token validation."""
    token: str = Field(default="")
