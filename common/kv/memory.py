"""
In-process key-value store.

Implements the KVStore contract in a dict, honoring TTLs and metadata.
Meant for local development (``KV_BACKEND=memory``) and tests; data is
lost when the process exits.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from common.kv.base import KVKey, KVStore


class InMemoryKV(KVStore):
    """Dict-backed KV store."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        # key -> (value, expires_at epoch seconds or None, metadata)
        self._data: Dict[str, Tuple[bytes, Optional[float], Any]] = {}

    def _live(self, key: str) -> Optional[Tuple[bytes, Optional[float], Any]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(
        self,
        key: str,
        value: bytes,
        ttl_seconds: Optional[int] = None,
        metadata: Optional[Any] = None,
    ) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (bytes(value), expires_at, metadata)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(
        self,
        prefix: str = "",
        limit: Optional[int] = None,
    ) -> List[KVKey]:
        names = sorted(k for k in list(self._data) if k.startswith(prefix))
        keys = []
        for name in names:
            entry = self._live(name)
            if entry is None:
                continue
            if limit is not None and len(keys) >= limit:
                break
            keys.append(KVKey(name=name, expiration=entry[1], metadata=entry[2]))
        return keys

    async def delete_bulk(self, keys: List[str]) -> None:
        for key in keys:
            self._data.pop(key, None)
