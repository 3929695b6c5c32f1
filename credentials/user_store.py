"""
User record storage over a key-value store.

Each user occupies two independent keys:

    user:email:<email>  ->  JSON UserRecord
    user:id:<id>        ->  raw email (index pointer)

The store offers no multi-key transactions, so writes and deletes of the
pair are two separate steps. A failure between them leaves the pair
half-written; this is surfaced as ``StorageInconsistentError`` and never
retried here.
"""

import logging
from typing import List

from pydantic import ValidationError

from common.kv import KVError, KVStore
from common.utils.exceptions import (
    StorageFailureError,
    StorageInconsistentError,
    UserNotFoundError,
)
from credentials.models import UserRecord

logger = logging.getLogger(__name__)

EMAIL_KEY_PREFIX = "user:email:"
ID_KEY_PREFIX = "user:id:"


def email_key(email: str) -> str:
    return f"{EMAIL_KEY_PREFIX}{email}"


def id_key(user_id: str) -> str:
    return f"{ID_KEY_PREFIX}{user_id}"


class UserRecordStore:
    """
    Maps user operations onto the email-keyed record and id-keyed index.
    """

    def __init__(self, kv: KVStore):
        """
        Initialize UserRecordStore.

        Args:
            kv: Key-value backend
        """
        self._kv = kv

    async def create(self, record: UserRecord) -> None:
        """
        Write the record and its id index.

        The caller is responsible for checking that no record exists for
        the email first.

        Raises:
            StorageFailureError: The record write failed (nothing stored)
            StorageInconsistentError: The record was stored but the index
                write failed
        """
        op = "UserRecordStore.create"

        try:
            await self._kv.set(email_key(record.email), record.to_json_bytes())
        except KVError as e:
            logger.error(f"{op}: failed to save user {record.id}: {e}")
            raise StorageFailureError(op, "failed to save user", cause=e)

        try:
            await self._kv.set(id_key(record.id), record.email.encode("utf-8"))
        except KVError as e:
            logger.error(
                f"{op}: user {record.id} saved by email but id index write failed: {e}"
            )
            raise StorageInconsistentError(op, "failed to save user ID mapping", cause=e)

    async def get_by_email(self, email: str) -> UserRecord:
        """
        Fetch a record by email.

        Raises:
            UserNotFoundError: No record for this email
            StorageFailureError: The read failed or the payload is unreadable
        """
        op = "UserRecordStore.get_by_email"

        try:
            data = await self._kv.get(email_key(email))
        except KVError as e:
            logger.error(f"{op}: read failed: {e}")
            raise StorageFailureError(op, cause=e)

        if data is None:
            raise UserNotFoundError(op)

        try:
            return UserRecord.from_json_bytes(data)
        except ValidationError as e:
            logger.error(f"{op}: stored record for {email} is unreadable")
            raise StorageFailureError(op, "failed to parse user data", cause=e)

    async def get_by_id(self, user_id: str) -> UserRecord:
        """
        Fetch a record by id through the index entry.

        A dangling index (record deleted, pointer still present) reads as
        not found.

        Raises:
            UserNotFoundError: No index entry, or no record behind it
            StorageFailureError: A read failed
        """
        op = "UserRecordStore.get_by_id"

        try:
            data = await self._kv.get(id_key(user_id))
        except KVError as e:
            logger.error(f"{op}: index read failed: {e}")
            raise StorageFailureError(op, cause=e)

        if data is None:
            raise UserNotFoundError(op)

        email = data.decode("utf-8", errors="replace")
        try:
            return await self.get_by_email(email)
        except UserNotFoundError:
            logger.warning(f"{op}: index for user {user_id} points to a missing record")
            raise UserNotFoundError(op)

    async def delete(self, email: str) -> UserRecord:
        """
        Remove the record and its index.

        Returns:
            The deleted record

        Raises:
            UserNotFoundError: No record for this email
            StorageFailureError: The record delete failed (nothing removed)
            StorageInconsistentError: The record was removed but the index
                delete failed
        """
        op = "UserRecordStore.delete"

        record = await self.get_by_email(email)

        try:
            await self._kv.delete(email_key(email))
        except KVError as e:
            logger.error(f"{op}: failed to delete user {record.id}: {e}")
            raise StorageFailureError(op, "failed to delete user", cause=e)

        try:
            await self._kv.delete(id_key(record.id))
        except KVError as e:
            logger.error(
                f"{op}: user {record.id} deleted by email but id index delete failed: {e}"
            )
            raise StorageInconsistentError(op, "failed to delete user ID mapping", cause=e)

        return record

    async def list_emails(self, limit: int = 100) -> List[str]:
        """
        List registered emails from the email-keyed entries.

        Raises:
            StorageFailureError: The listing failed
        """
        op = "UserRecordStore.list_emails"

        try:
            keys = await self._kv.list_keys(prefix=EMAIL_KEY_PREFIX, limit=limit)
        except KVError as e:
            logger.error(f"{op}: listing failed: {e}")
            raise StorageFailureError(op, cause=e)

        return [key.name[len(EMAIL_KEY_PREFIX):] for key in keys]
