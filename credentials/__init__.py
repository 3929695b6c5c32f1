"""
Credentials application - user records on KV, registration, login and
bearer token validation.
"""

from credentials.models import UserRecord, UserInfo, LoginResult
from credentials.user_store import UserRecordStore
from credentials.service import CredentialService

__all__ = [
    "UserRecord",
    "UserInfo",
    "LoginResult",
    "UserRecordStore",
    "CredentialService",
]
