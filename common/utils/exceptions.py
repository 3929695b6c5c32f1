"""
Credential error taxonomy and HTTP mapping.

Every failure raised by the credential core is a ``CredentialError``
subclass carrying the operation that failed, the underlying cause, a
user-safe message and a classification code. The transport layer maps
the code to an HTTP status through ``APIException.from_error`` without
inspecting internal types.

Example:
    from common.utils import UserNotFoundError, APIException

    try:
        user = await service.get_user_by_email(email)
    except CredentialError as e:
        raise APIException.from_error(e)
"""

from enum import Enum
from typing import Optional, Any, Dict

from fastapi import HTTPException


class ErrorCode(str, Enum):
    """Machine-readable error classification."""

    INVALID_INPUT = "INVALID_INPUT"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    STORAGE_INCONSISTENT = "STORAGE_INCONSISTENT"


class CredentialError(Exception):
    """
    Base error for credential operations.

    Subclasses fix ``code``, ``status_code`` and ``default_message``.
    """

    code: ErrorCode = ErrorCode.STORAGE_FAILURE
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        op: str,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        """
        Create a credential error.

        Args:
            op: Name of the operation that failed (e.g. "CredentialService.login")
            message: User-safe message, defaults to the class message
            cause: Underlying exception, if any
        """
        self.op = op
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(str(self))

    def __str__(self) -> str:
        detail = self.cause if self.cause is not None else self.message
        return f"{self.op}: {detail}"

    def to_dict(self) -> Dict[str, Any]:
        """Wire-safe representation (no cause)."""
        return {"message": self.message, "code": self.code.value}


class InvalidInputError(CredentialError):
    """Missing or malformed caller-supplied fields."""

    code = ErrorCode.INVALID_INPUT
    status_code = 400
    default_message = "email and password are required"


class UserNotFoundError(CredentialError):
    code = ErrorCode.USER_NOT_FOUND
    status_code = 404
    default_message = "user not found"


class UserAlreadyExistsError(CredentialError):
    code = ErrorCode.USER_ALREADY_EXISTS
    status_code = 409
    default_message = "user already exists"


class InvalidCredentialsError(CredentialError):
    code = ErrorCode.INVALID_CREDENTIALS
    status_code = 401
    default_message = "invalid credentials"


class InvalidTokenError(CredentialError):
    """
    Token rejected by the codec or empty.

    ``reason`` records which check failed, for logs only. Callers must not
    branch on it.
    """

    code = ErrorCode.INVALID_TOKEN
    status_code = 401
    default_message = "invalid token"

    def __init__(
        self,
        op: str,
        reason: Optional[Enum] = None,
        cause: Optional[BaseException] = None,
    ):
        self.reason = reason
        super().__init__(op, cause=cause)

    def __str__(self) -> str:
        if self.reason is not None:
            return f"{self.op}: {self.message} ({self.reason.value})"
        return super().__str__()


class StorageFailureError(CredentialError):
    """A KV call failed or returned unreadable data."""

    code = ErrorCode.STORAGE_FAILURE
    status_code = 500
    default_message = "storage operation failed"


class StorageInconsistentError(CredentialError):
    """One key of the email/id pair was written or removed but not the other."""

    code = ErrorCode.STORAGE_INCONSISTENT
    status_code = 500
    default_message = "user storage left in an inconsistent state"


class APIException(HTTPException):
    """
    HTTP exception with error code support.

    Provides consistent error response format across the API.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Create an API exception.

        Args:
            status_code: HTTP status code
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
            headers: Optional response headers
        """
        detail: Dict[str, Any] = {"message": message}

        if code:
            detail["code"] = code

        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers,
        )

    @classmethod
    def from_error(cls, error: CredentialError) -> "APIException":
        """Map a credential error to its HTTP status and wire body."""
        headers = None
        if error.status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        return cls(error.status_code, error.message, error.code.value, headers=headers)


class UnauthorizedException(APIException):
    """401 Unauthorized - Missing or malformed authentication header."""

    def __init__(
        self,
        message: str = "Unauthorized",
        code: str = "UNAUTHORIZED",
    ):
        super().__init__(401, message, code, headers={"WWW-Authenticate": "Bearer"})
