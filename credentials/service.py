"""
Credential service.

Orchestrates registration, login, token validation, lookup and deletion
on top of the password hasher, the token codec and the user record store.

The service holds no mutable state besides its collaborators, so one
instance can serve concurrent requests. Nothing here retries a failed
store call; cancellation of the calling task propagates into the store.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List

from common.auth.jwt_auth import JWTTokenCodec, SessionClaims
from common.auth.password_hasher import PasswordHasher
from common.utils.exceptions import (
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from credentials.models import LoginResult, UserInfo, UserRecord
from credentials.user_store import UserRecordStore

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


class CredentialService:
    """
    Password-based registration/login and bearer token validation.
    """

    def __init__(
        self,
        store: UserRecordStore,
        hasher: PasswordHasher,
        codec: JWTTokenCodec,
        token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initialize CredentialService.

        Args:
            store: User record storage
            hasher: Password hasher
            codec: Session token codec
            token_lifetime: Validity of issued tokens
            clock: Returns the current aware UTC time
        """
        self._store = store
        self._hasher = hasher
        self._codec = codec
        self._token_lifetime = token_lifetime
        self._clock = clock

    async def register(self, email: str, password: str) -> UserRecord:
        """
        Create a new user account.

        The existence check and the write are not atomic: two concurrent
        registrations for the same email can both pass the check, and the
        later write wins. The KV store has no conditional put to prevent it.

        Returns:
            The created record

        Raises:
            InvalidInputError: Email or password empty
            UserAlreadyExistsError: A record exists for this email
            StorageFailureError: A store call failed
            StorageInconsistentError: Record written but id index not
        """
        op = "CredentialService.register"

        if not email or not password:
            raise InvalidInputError(op)

        try:
            await self._store.get_by_email(email)
        except UserNotFoundError:
            pass
        else:
            logger.info(f"Registration rejected, user already exists: {email}")
            raise UserAlreadyExistsError(op)

        password_hash = await self._hasher.hash_async(password)

        now = self._clock()
        record = UserRecord(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )

        await self._store.create(record)

        logger.info(f"User registered: {record.id}")
        return record

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate a user and issue a session token.

        Raises:
            InvalidInputError: Email or password empty
            UserNotFoundError: No record for this email
            InvalidCredentialsError: Password does not match
            StorageFailureError: A store call failed
        """
        op = "CredentialService.login"

        if not email or not password:
            raise InvalidInputError(op)

        try:
            record = await self._store.get_by_email(email)
        except UserNotFoundError:
            logger.info(f"Login failed, unknown user: {email}")
            raise UserNotFoundError(op)

        if not await self._hasher.verify_async(password, record.password_hash):
            logger.info(f"Login failed, invalid credentials for user {record.id}")
            raise InvalidCredentialsError(op)

        claims = SessionClaims.for_user(
            record.id,
            record.email,
            lifetime=self._token_lifetime,
            now=self._clock(),
        )
        token = self._codec.issue(claims)

        logger.info(f"User logged in: {record.id}")
        return LoginResult(
            token=token,
            expires_at=claims.expires_at,
            user=UserInfo.from_record(record),
        )

    async def validate_token(self, token: str) -> UserRecord:
        """
        Verify a token and return the live user record.

        The record is re-read from the store by the token's user id, so a
        user deleted after issuance fails validation even with an
        unexpired token.

        Raises:
            InvalidTokenError: Token empty, malformed, forged or outside
                its validity window
            UserNotFoundError: The user no longer exists
            StorageFailureError: A store call failed
        """
        op = "CredentialService.validate_token"

        if not token:
            raise InvalidTokenError(op)

        try:
            claims = self._codec.verify(token)
        except InvalidTokenError as e:
            logger.info(f"Token validation failed: {e.reason.value if e.reason else 'unknown'}")
            raise

        try:
            return await self._store.get_by_id(claims.user_id)
        except UserNotFoundError:
            logger.info(f"Token valid but user {claims.user_id} no longer exists")
            raise UserNotFoundError(op)

    async def get_user_by_id(self, user_id: str) -> UserRecord:
        """Fetch a user by id."""
        if not user_id:
            raise UserNotFoundError("CredentialService.get_user_by_id")
        return await self._store.get_by_id(user_id)

    async def get_user_by_email(self, email: str) -> UserRecord:
        """Fetch a user by email."""
        if not email:
            raise UserNotFoundError("CredentialService.get_user_by_email")
        return await self._store.get_by_email(email)

    async def delete_user(self, email: str) -> None:
        """
        Delete a user account (record and id index).

        Raises:
            UserNotFoundError: No record for this email
            StorageFailureError: The record delete failed
            StorageInconsistentError: Record deleted but id index not
        """
        if not email:
            raise UserNotFoundError("CredentialService.delete_user")
        record = await self._store.delete(email)
        logger.info(f"User deleted: {record.id}")

    async def list_user_emails(self, limit: int = 100) -> List[str]:
        """List registered emails, up to ``limit``."""
        return await self._store.list_emails(limit=limit)
