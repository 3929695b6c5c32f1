"""
Utilities module - API responses and the credential error taxonomy.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    ErrorCode,
    CredentialError,
    InvalidInputError,
    UserNotFoundError,
    UserAlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    StorageFailureError,
    StorageInconsistentError,
    APIException,
    UnauthorizedException,
)

__all__ = [
    "success_response",
    "error_response",
    "ErrorCode",
    "CredentialError",
    "InvalidInputError",
    "UserNotFoundError",
    "UserAlreadyExistsError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "StorageFailureError",
    "StorageInconsistentError",
    "APIException",
    "UnauthorizedException",
]
