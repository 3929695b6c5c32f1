"""
Abstract key-value store interface.

Defines the minimal contract the credential core needs from a KV backend.
Backends are assumed eventually consistent, with no cross-key transactions
and no conditional writes.

Example:
    from common.kv import KVStore, CloudflareKV, InMemoryKV

    def get_kv_store(settings) -> KVStore:
        if settings.KV_BACKEND == "memory":
            return InMemoryKV()
        return CloudflareKV.from_settings(settings)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional


class KVError(Exception):
    """A KV call failed for a reason other than a missing key."""

    def __init__(
        self,
        op: str,
        message: str,
        key: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.op = op
        self.key = key
        self.status_code = status_code
        detail = message
        if status_code is not None:
            detail = f"{detail} (status {status_code})"
        super().__init__(f"{op}: {detail}")


@dataclass
class KVKey:
    """A key listed from a namespace."""

    name: str
    expiration: Optional[float] = None
    metadata: Optional[Any] = None


class KVStore(ABC):
    """
    Abstract async key-value store.

    All methods may suspend the calling task for the duration of the
    remote call; cancelling the task cancels the call.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Read a value.

        Returns:
            The stored bytes, or None if the key does not exist

        Raises:
            KVError: If the read failed
        """
        pass

    @abstractmethod
    async def set(
        self,
        key: str,
        value: bytes,
        ttl_seconds: Optional[int] = None,
        metadata: Optional[Any] = None,
    ) -> None:
        """
        Write a value, replacing any existing one.

        Args:
            key: Key name
            value: Raw bytes to store
            ttl_seconds: Expire the key after this many seconds
            metadata: JSON-serializable metadata attached to the key

        Raises:
            KVError: If the write failed
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is not an error.

        Raises:
            KVError: If the delete failed
        """
        pass

    @abstractmethod
    async def list_keys(
        self,
        prefix: str = "",
        limit: Optional[int] = None,
    ) -> List[KVKey]:
        """
        List keys starting with ``prefix``, in lexicographic order.

        Raises:
            KVError: If the listing failed
        """
        pass

    @abstractmethod
    async def delete_bulk(self, keys: List[str]) -> None:
        """
        Remove several keys in one call.

        Raises:
            KVError: If the delete failed
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
